# PyTest configuration file.
# See pytest fixtue docs: https://docs.pytest.org/en/latest/fixture.html
import matplotlib

# Use non-TK matplotlib backend so tests never try to open a window.
matplotlib.use("Agg")
