from backend.app.main import run

run()
