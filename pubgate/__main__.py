from pubgate.cli import run

run()
