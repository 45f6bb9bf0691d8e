"""Allow ``python -m dslgen``."""

from .cli import main

main()
