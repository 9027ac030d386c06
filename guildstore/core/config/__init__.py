"""
Configuration subsystem for Guildstore.

Static configuration is read from environment variables (with .env support)
when this package is imported:

```python
from guildstore.core.config import Config

guilds_dir = Config.GUILDS_DIR
if Config.is_production():
    ...
```
"""

from guildstore.core.config.config import Config, Environment

__all__ = ["Config", "Environment"]
