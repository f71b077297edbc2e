#!/usr/bin/env python3
from dirsite.cli import main

if __name__ == "__main__":
    main()
