import argparse
import json
import time

import requests

from config import configure_logging
from db import EntityStore
from gamification_service import GamificationService
from seed_sample_data import seed


def export_store(db_path: str, output: str) -> None:
    """Write every entity collection to ``output`` as JSON."""
    store = EntityStore(db_path)
    with open(output, "w", encoding="utf-8") as f:
        json.dump(store.export(), f, indent=2, default=str)
    store.close()


def print_leaderboard(db_path: str) -> None:
    store = EntityStore(db_path)
    rows = GamificationService(store.users, store.progress).leaderboard()
    for rank, row in enumerate(rows, start=1):
        print(
            f"{rank:>3}. {row['name']:<24} {row['city']:<12} "
            f"{row['workouts']:>4} workouts {row['minutes']:>5} min {row['points']:>6} pts"
        )
    store.close()


def seed_store(db_path: str) -> None:
    store = EntityStore(db_path)
    if seed(store):
        print("Demo data inserted")
    else:
        print("Store already contains users")
    store.close()


def benchmark(url: str, runs: int = 10) -> None:
    times: list[float] = []
    for _ in range(runs):
        t0 = time.time()
        requests.get(f"{url}/health", timeout=5)
        times.append(time.time() - t0)
    avg = sum(times) / len(times)
    print(f"Average /health response time over {runs} runs: {avg:.4f}s")


def serve(db_path: str, yaml_path: str, host: str, port: int) -> None:
    import uvicorn
    from rest_api import FitnessAPI

    api = FitnessAPI(db_path=db_path, yaml_path=yaml_path)
    uvicorn.run(api.app, host=host, port=port)


def main() -> None:
    parser = argparse.ArgumentParser(description="FitLife utility commands")
    sub = parser.add_subparsers(dest="cmd", required=True)

    srv = sub.add_parser("serve")
    srv.add_argument("--db", default=":memory:")
    srv.add_argument("--yaml", default="settings.yaml")
    srv.add_argument("--host", default="127.0.0.1")
    srv.add_argument("--port", type=int, default=8000)

    sd = sub.add_parser("seed")
    sd.add_argument("--db", default="fitlife.db")

    lb = sub.add_parser("leaderboard")
    lb.add_argument("--db", default="fitlife.db")

    exp = sub.add_parser("export")
    exp.add_argument("--db", default="fitlife.db")
    exp.add_argument("--out", default="fitlife_export.json")

    bench = sub.add_parser("benchmark")
    bench.add_argument("--url", default="http://localhost:8000")
    bench.add_argument("--runs", type=int, default=10)

    args = parser.parse_args()
    configure_logging()

    if args.cmd == "serve":
        serve(args.db, args.yaml, args.host, args.port)
    elif args.cmd == "seed":
        seed_store(args.db)
    elif args.cmd == "leaderboard":
        print_leaderboard(args.db)
    elif args.cmd == "export":
        export_store(args.db, args.out)
    elif args.cmd == "benchmark":
        benchmark(args.url, args.runs)


if __name__ == "__main__":
    main()
