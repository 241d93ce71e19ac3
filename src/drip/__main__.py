"""Allow ``python -m drip``."""

from drip.main import main

main()
