#!/usr/bin/env python3
"""Entry point for the Portfolio Growth Simulator."""

from portfolio_simulator.cli import main

if __name__ == "__main__":
    main()
