"""Main entry point for lunchstats package."""

from lunchstats.cli.commands import main

if __name__ == '__main__':
    main()
