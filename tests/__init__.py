import os
import tempfile

# Keep test runs from writing logs and state into the real user data folder
os.environ.setdefault("RACETIMER_HOME", tempfile.mkdtemp(prefix="racetimer_test_"))
