"""
dendro: hierarchical merge trees by agglomerative clustering.
"""

__version__ = "0.1.0"
