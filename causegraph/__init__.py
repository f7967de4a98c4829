"""causegraph - layered layout and filtering for cause-effect graphs."""

__version__ = "0.1.0"
