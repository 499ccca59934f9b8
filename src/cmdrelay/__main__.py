"""cmdrelay CLI bootstrap."""

from cmdrelay.cli import app

if __name__ == "__main__":
    app()
