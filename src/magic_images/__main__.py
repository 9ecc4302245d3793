from .cli import app

app(prog_name="magic-images")
