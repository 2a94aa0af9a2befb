"""stz: src/stz/__init__.py."""

__version__ = "1.0.0"


def encode_host_for_name(host: str) -> str:
    """Replace '@' with '_' so a user@host destination can live in a file name"""
    return host.replace("@", "_")
