# presentation/main.py

import logging

from application.config import load_config
from application.pool_service import PoolService
from presentation.event_loop import event_loop
from presentation.renderer import display


def run(config_file=None):
    """Initializes and runs the pool demonstration."""
    config = load_config(config_file)
    logging.basicConfig(
        level=config.get("logging", "level", default="INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    pool_service = PoolService(config)
    try:
        threads = pool_service.start_workers()
        event_loop(pool_service, threads)
    except KeyboardInterrupt:
        print("\nDemo interrupted by user. Exiting.")
    finally:
        pool_service.shutdown()
        pool_service.process_events()
        display(pool_service.get_render_data())
    return pool_service
