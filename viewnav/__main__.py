"""Entrypoint for `python -m viewnav`."""

from .cli import app


def main() -> None:
    app()


if __name__ == "__main__":
    main()
