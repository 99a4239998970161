"""Package entry point for ``python -m transcriptor``.

WHY: Users run the tool as ``python -m transcriptor <url>`` without
installing the console script.

HOW: Delegates to the CLI's main() function.
"""

from transcriptor.cli import main

if __name__ == "__main__":
    main()
