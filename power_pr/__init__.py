"""power-pr: open (or reuse) a pull request and merge it through the GitHub CLI."""

__version__ = "0.1.0"
