"""Command parsing and the clamping/validating request modes."""

from __future__ import annotations

import pytest

from uid_bot.provisioning.errors import RequestValidationError
from uid_bot.provisioning.request import (
    COUNT_MISSING_REASON,
    COUNT_OUT_OF_RANGE_REASON,
    MAX_UNITS,
    NAME_EMPTY_REASON,
    CommandArguments,
    ProvisioningRequest,
    parse_command_text,
    parse_count,
    resolve_request,
)


class TestParseCommandText:
    def test_bare_command(self):
        assert parse_command_text('/uid') == CommandArguments()

    def test_count_only(self):
        assert parse_command_text('/uid 5') == CommandArguments(count='5')

    def test_count_and_name(self):
        assert parse_command_text('/uid 5 bob') == CommandArguments(count='5', name='bob')

    def test_name_keeps_internal_spaces(self):
        args = parse_command_text('/uid@MyBot 3 big  bad wolf')
        assert args.count == '3'
        assert args.name == 'big  bad wolf'

    def test_trailing_whitespace_is_not_a_name(self):
        assert parse_command_text('/uid 4   ').name is None


class TestParseCount:
    @pytest.mark.parametrize(
        ('raw', 'expected'),
        [
            ('5', 5),
            ('  7', 7),
            ('12abc', 12),
            ('-3', -3),
            ('+4', 4),
            ('abc', None),
            ('', None),
            (None, None),
        ],
    )
    def test_leading_integer(self, raw, expected):
        assert parse_count(raw) == expected


class TestClampingMode:
    @pytest.mark.parametrize(
        ('raw', 'expected'),
        [
            (None, 1),
            ('0', 1),
            ('1', 1),
            ('7', 7),
            ('20', 20),
            ('21', 20),
            ('999', 20),
            ('-5', 1),
            ('lots', 1),
        ],
    )
    def test_effective_count(self, raw, expected):
        request = resolve_request(CommandArguments(count=raw))
        assert request.effective_count == expected
        assert request.name is None
        assert request.explicit_name is False

    def test_requested_count_is_kept(self):
        assert resolve_request(CommandArguments(count='999')).requested_count == '999'


class TestValidatingMode:
    def test_valid_request(self):
        request = resolve_request(CommandArguments(count='3', name='  bob  '))
        assert request.effective_count == 3
        assert request.name == 'bob'
        assert request.explicit_name is True

    @pytest.mark.parametrize('count', ['0', '21', '999', '-1'])
    def test_out_of_range_count_rejected(self, count):
        with pytest.raises(RequestValidationError) as exc_info:
            resolve_request(CommandArguments(count=count, name='bob'))
        assert exc_info.value.reason == COUNT_OUT_OF_RANGE_REASON

    @pytest.mark.parametrize('count', [None, 'bob', ''])
    def test_missing_count_rejected(self, count):
        with pytest.raises(RequestValidationError) as exc_info:
            resolve_request(CommandArguments(count=count, name='bob'))
        assert exc_info.value.reason == COUNT_MISSING_REASON

    def test_blank_name_rejected(self):
        with pytest.raises(RequestValidationError) as exc_info:
            resolve_request(CommandArguments(count='2', name='   '))
        assert exc_info.value.reason == NAME_EMPTY_REASON

    def test_rejections_have_distinct_messages(self):
        messages = set()
        for args in (
            CommandArguments(count=None, name='bob'),
            CommandArguments(count='50', name='bob'),
            CommandArguments(count='2', name=' '),
        ):
            with pytest.raises(RequestValidationError) as exc_info:
                resolve_request(args)
            messages.add(exc_info.value.user_message)
        assert len(messages) == 3


class TestProvisioningRequest:
    @pytest.mark.parametrize('count', [0, MAX_UNITS + 1])
    def test_invariant_enforced(self, count):
        with pytest.raises(ValueError, match='effective_count'):
            ProvisioningRequest(effective_count=count)
