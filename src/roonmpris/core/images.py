"""Cover art URL resolution."""


def resolve_image_url(base_address: str, image_key: str | None) -> str | None:
    """Build the URL the core serves a cover image under.

    The address is not validated; a malformed address yields a malformed URL.

    Args:
        base_address: Core address (host:port, optionally with a path).
        image_key: Opaque image key from the now-playing data.

    Returns:
        ``http://<base_address>/image/<image_key>``, or None without a key.
    """
    if not image_key:
        return None
    return f"http://{base_address}/image/{image_key}"
