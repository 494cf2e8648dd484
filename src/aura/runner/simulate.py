from __future__ import annotations

import argparse
import asyncio
import random
from typing import Dict, Optional

from aura.connector.feedback_client import FeedbackClient
from aura.protocol.messages import FeedbackEvent
from aura.utils.logger import configure_logging, get_logger

logger = get_logger(__name__)

ACTIONS = ("action_1", "action_2", "action_3", "action_4")
DEVICES = ("desktop", "mobile", "tablet")


def simulate_behavior(rng: random.Random) -> FeedbackEvent:
    """One random user report, as a quick way to exercise a running server."""
    return FeedbackEvent(
        subject_id=f"user_{rng.randrange(10)}",
        action=rng.choice(ACTIONS),
        sign=rng.randrange(2) * 2 - 1,
        device=rng.choice(DEVICES),
    )


async def run_simulation(url: str, iterations: int = 10, seed: Optional[int] = None) -> Dict[str, int]:
    rng = random.Random(seed)
    async with FeedbackClient(url) as client:
        for _ in range(iterations):
            event = simulate_behavior(rng)
            reply = await client.send_feedback(event)
            logger.info(
                "simulated_feedback",
                subject_id=event.subject_id,
                action=event.action,
                feedback=event.sign,
                reply=reply,
            )
        return await client.retrieve()


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Send random feedback events to a running server.")
    parser.add_argument("--url", default="ws://localhost:8765", help="Websocket URL of the server.")
    parser.add_argument("--iterations", type=int, default=10, help="Number of events to send.")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for repeatable runs.")
    parser.add_argument("--log-level", default="info", help="debug, info, warning or error.")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    configure_logging(args.log_level)
    scores = asyncio.run(run_simulation(args.url, iterations=args.iterations, seed=args.seed))
    print("\nFinal knowledge base:")
    for action, score in sorted(scores.items()):
        print(f"Action: '{action}', Score: {score}")


if __name__ == "__main__":
    main()
