from app.orchestrator import run

run()
