"""Allow running provctl as ``python -m provctl``."""

from provctl.cli.main import app

if __name__ == "__main__":
    app()
