# roomy/cli/__main__.py
from __future__ import annotations

import argparse

from roomy.cli.seed_demo import seed_demo
from roomy.config import settings


def main() -> None:
    p = argparse.ArgumentParser(prog="python -m roomy.cli", description="Seed demo data for local development.")
    p.add_argument("--actor", default=settings.default_actor_email, help="recorded as created_by on seeded rows")
    args = p.parse_args()

    out = seed_demo(actor=args.actor)
    print(
        {
            "ok": True,
            "agents": out.agents,
            "owners": out.owners,
            "cleaning_tasks": out.cleaning_tasks,
            "maintenance_tasks": out.maintenance_tasks,
            "conversations": out.conversations,
        }
    )


if __name__ == "__main__":
    main()
