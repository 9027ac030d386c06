"""
Domain layer for Guildstore.

Rich domain models (`domain.models`) and the domain exception surface
(`domain.exceptions`). Nothing here touches storage directly; the guild
aggregate talks to a `RecordStore` it is handed.
"""
