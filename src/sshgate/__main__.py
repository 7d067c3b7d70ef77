"""Allow running as: python -m sshgate"""

from sshgate.cli import cli

if __name__ == "__main__":
    cli()
