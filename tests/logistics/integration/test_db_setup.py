"""Tests for the schema helpers and the manage CLI."""

import pytest
from logistics.domain import logistics
from logistics.utils.db import _sql_providers, drop_db, setup_db


class TestSchemaHelpers:
    def test_memory_provider_needs_no_schema(self):
        assert _sql_providers(logistics) == []

    def test_setup_and_drop_are_noops_for_memory(self):
        setup_db(logistics)
        drop_db(logistics)


class TestManageCli:
    def test_unknown_command_exits(self):
        from manage import main

        with pytest.raises(SystemExit):
            main(["migrate"])

    def test_command_is_required(self):
        from manage import main

        with pytest.raises(SystemExit):
            main([])
