"""Allow ``python -m kennel``."""

from kennel.cli.main import app

if __name__ == "__main__":
    app()
