"""
Guildstore Test Suite
=====================

Test Organization
-----------------
- tests/unit/          : Fast unit tests (tmp_path-backed record stores, mocks)
- tests/unit/domain/   : Guild aggregate and value object tests
- tests/integration/   : Registry and record store working together on disk

Testing Philosophy
------------------
- Unit tests: Fast, isolated, test business logic
- Integration tests: Exercise real files under a temporary directory
- Use pytest markers to categorize and selectively run tests
- Follow AAA pattern: Arrange, Act, Assert
"""
