from jwtmint.core.cli import run

run()
