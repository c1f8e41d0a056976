"""
rollblock: a tick-driven rolling-block puzzle engine

A 1x1x2 block rolls across a tile grid by pivoting over its edges. Levels add
switches that toggle bridges, heavy switches that need the block standing,
fragile tiles that cannot hold it upright, and splitters that break it into two
independently steerable halves. The engine owns no clock: a host advances it
one logic tick at a time and reads back snapshots.

Example Usage:
```python
from rollblock.game import RunController

controller = RunController()
controller.advance_until_ready()
for move in "RDDRRDR":
    controller.submit_move(move)
    controller.advance_until_ready()
print(controller.snapshot().level_index)
```

Command-line Usage:
```bash
rollblock play
rollblock replay --script "RDDRRDR"
rollblock list-levels
```
"""

# Normal imports instead of lazy loading to ensure proper registry initialization
from rollblock.core.config import Config, EngineConfig, load_config, validate_config
from rollblock.game import RunController, RunSnapshot, default_catalog
import rollblock.environment  # noqa: F401
from rollblock.runner import ReplayRunner, parse_move_script

__version__ = "0.1.0"

__all__ = [
    "Config",
    "EngineConfig",
    "load_config",
    "validate_config",
    "RunController",
    "RunSnapshot",
    "default_catalog",
    "ReplayRunner",
    "parse_move_script",
]
