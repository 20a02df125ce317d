#!/usr/bin/env python3
"""Main entry point for the consultation simulator package."""

from consultation.scripts.run_simulation import main

if __name__ == '__main__':
    main()
