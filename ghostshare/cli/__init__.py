"""ghostshare command-line interface."""
