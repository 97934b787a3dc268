"""HTML builders for LawPhil-shaped test pages."""

PAD = "<!-- " + ("padding " * 800) + "-->"


def lawphil_page(body_html: str, title: str = "LawPhil") -> str:
    """Wrap body markup in a page long enough to pass the sanity gate."""
    return (
        "<html><head>"
        f"<title>{title}</title>"
        '<meta name="description" content="Philippine law">'
        "</head><body>"
        f"{body_html}"
        f"{PAD}"
        "</body></html>"
    )
