"""Paper reproduction: figures and tables built from the study results."""
