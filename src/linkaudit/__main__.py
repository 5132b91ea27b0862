from linkaudit.interfaces.cli import start

raise SystemExit(start())
