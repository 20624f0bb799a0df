"""Coverage histograms and growth statistics for pangenome graphs in GFA format."""

__version__ = "0.4.0"