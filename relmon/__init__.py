"""relmon - watch GitLab projects for new releases."""

__version__ = "0.1.0"
