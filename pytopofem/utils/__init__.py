from .meshgen import (
    structured_bar, structured_quad, structured_tri, structured_hex, structured_tet,
)

__all__ = [
    "structured_bar", "structured_quad", "structured_tri", "structured_hex", "structured_tet",
]
