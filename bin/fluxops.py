#!/usr/bin/env python
from fluxops.cli import cli

if __name__ == "__main__":
    cli()
