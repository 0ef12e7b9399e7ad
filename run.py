from agency_finance import create_app
from agency_finance.realtime import socketio
import os

app = create_app()

if __name__ == "__main__":
    port = int(os.getenv("PORT", 5050))
    socketio.run(
        app,
        host="127.0.0.1",
        port=port,
        debug=False,
        use_reloader=False,
        log_output=True,
    )

# Local:
# docker compose --env-file .env.docker up -d
# alembic upgrade head && python scripts/seed.py
# PORT=5050 python run.py
# rq worker -u $REDIS_URL   (only with USE_TASK_QUEUE=1)
