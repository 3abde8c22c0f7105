# ffhls/__main__.py
"""Entry point for python -m ffhls"""
import sys
from ffhls.cli import main

if __name__ == "__main__":
    sys.exit(main())
