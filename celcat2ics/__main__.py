"""
Package entry point.

Allows running the application via:

    python -m celcat2ics

This simply forwards execution to celcat2ics.cli.main().
"""

from celcat2ics.cli import main

if __name__ == "__main__":
    main()
