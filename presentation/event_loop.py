# presentation/event_loop.py
import time
import traceback

POLL_SECONDS = 0.01


def event_loop(pool_service, threads, poll_seconds=POLL_SECONDS):
    """
    Drains worker events until every worker thread has finished.
    """
    try:
        while any(thread.is_alive() for thread in threads):
            pool_service.process_events()
            time.sleep(poll_seconds)

        for thread in threads:
            thread.join()
        # Workers may have queued events right before exiting
        pool_service.process_events()

    except Exception:
        print("\n" * 2)
        print("=" * 20, " A FATAL ERROR OCCURRED IN EVENT LOOP ", "=" * 20)
        traceback.print_exc()
        print("=" * 60)
        # Re-raise so the caller's finally block still closes the pool
        raise
