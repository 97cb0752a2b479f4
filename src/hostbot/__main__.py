from hostbot.cli import app

app()
