from dendro.preprocess.missing_values import MissingValueValidator

__all__ = ["MissingValueValidator"]
