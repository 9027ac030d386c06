"""
Feature modules for Guildstore.

- shared: domain exceptions shared by every module
- guild: guild registry and creation
"""
