from .essential import EssentialBCs, apply_constraints, apply_block_constraints

__all__ = ["EssentialBCs", "apply_constraints", "apply_block_constraints"]
