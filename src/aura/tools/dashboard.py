import argparse
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

import uvicorn
from fastapi import FastAPI, HTTPException

from aura.errors import DecodeError
from aura.persistence.snapshot_file import load_snapshot


def create_app(snapshot_path: str | Path) -> FastAPI:
    """Read-only view of the last checkpoint; never touches a live store."""
    path = Path(snapshot_path)
    app = FastAPI(title="AURA Score Dashboard")

    @app.get("/health")
    async def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/scores")
    async def get_scores() -> Dict[str, Any]:
        try:
            scores = load_snapshot(path)
        except DecodeError as exc:
            raise HTTPException(status_code=500, detail=str(exc))
        if scores is None:
            return {"scores": {}, "waiting": True, "file": str(path)}
        mtime = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
        return {"scores": scores, "checkpointed_at": mtime.isoformat()}

    return app


def main():
    parser = argparse.ArgumentParser(description="Serve the last checkpointed scores over HTTP.")
    parser.add_argument("--port", type=int, default=3000)
    parser.add_argument("--host", type=str, default="0.0.0.0")
    parser.add_argument("--snapshot-path", type=str, default="artifacts/knowledge.json")
    args = parser.parse_args()

    print(f"Dashboard running at http://localhost:{args.port}")
    print(f"Reading checkpoints from: {args.snapshot_path}")

    uvicorn.run(create_app(args.snapshot_path), host=args.host, port=args.port, log_level="error")


if __name__ == "__main__":
    main()
