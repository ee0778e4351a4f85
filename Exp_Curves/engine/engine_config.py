# Exp_Curves/engine/engine_config.py
"""
Configuration for the multiprocessing fit engine.
Adjust these values based on your needs.
"""

# Number of worker processes to spawn
# One window runs len(DEGREE_CANDIDATES) = 5 trials, so more than 5 workers
# only helps when several encoders share an engine.
WORKER_COUNT = 5

# Queue sizes (how many jobs/results can be buffered)
JOB_QUEUE_SIZE = 1000
RESULT_QUEUE_SIZE = 1000

# Heartbeat interval (seconds)
# How often the engine records "I'm alive" stats
HEARTBEAT_INTERVAL = 1.0

# Shutdown timeout (seconds)
# How long to wait for workers to finish before forcing termination
SHUTDOWN_TIMEOUT = 2.0

# How long the main process sleeps between result polls while collecting (seconds)
POLL_INTERVAL = 0.002

# How long a worker blocks on the job queue before re-checking shutdown (seconds)
WORKER_QUEUE_TIMEOUT = 0.1

# Debug flag - set to True to print detailed engine logging to the console
DEBUG_ENGINE = False
