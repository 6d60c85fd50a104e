"""CodeSyncer - keep AI collaboration docs in sync with your code."""

__version__ = "3.1.0"
