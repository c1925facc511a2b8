"""Main script for feeding feedback through the pipeline from a terminal."""

import asyncio

from .domain.errors import FeedbackMarketError
from .domain.models.feedback import FeedbackEvent
from .infrastructure.dependencies import ServiceContainer


async def main():
    """Run the feedback market interactively."""
    print("Feedback Market - turn raw feedback into reinforced claims")
    print("----------------------------------------------------------")

    container = ServiceContainer()
    await container.startup()
    pipeline = container.get('feedback_pipeline')
    engine = container.get('reinforcement_engine')
    store = container.get('claim_store')

    try:
        while True:
            text = input("\nEnter feedback (or 'quit' to exit): ")
            if text.lower() in ('quit', 'exit', 'q'):
                break
            if not text.strip():
                continue
            source = input("Source [cli]: ").strip() or "cli"

            print("\nProcessing...")
            try:
                result = await pipeline.process(FeedbackEvent(text=text, source=source))
            except FeedbackMarketError as e:
                print(f"\nCould not process feedback: {e}")
                continue

            claim = await store.get(result.claim_id)
            print(f"\nDecision: {result.applied.kind}")
            print(f"Claim #{claim.id}: {claim.text}")
            print(f"Signal weight: {claim.signal_weight}")
            print(f"Sources: {', '.join(sorted(claim.sources))}")

        print("\nClaims:")
        for claim in await store.list_claims():
            report = engine.classify(claim)
            marker = " (decaying)" if report.decaying else ""
            print(f"{report.signal_weight:>5}  {report.text}{marker}")

    finally:
        await container.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
