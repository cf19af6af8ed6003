"""Identity — verifies CURP validation and email/CURP normalization."""

import pytest

from vida.core.identity import is_valid_curp, normalize_curp, normalize_email


@pytest.mark.parametrize("curp", [
    "GARC850101HDFRRL09",
    "LOPM900215MDFLPRA8",
    "  garc850101hdfrrl09 ",
])
def test_valid_curps(curp):
    assert is_valid_curp(curp)


@pytest.mark.parametrize("curp", [
    None, "", "GARC850101", "GARC850101XDFRRL09", "1ARC850101HDFRRL09",
    "GARC850101HDFRRL0A",
])
def test_invalid_curps(curp):
    assert not is_valid_curp(curp)


def test_normalization():
    assert normalize_curp(" garc850101hdfrrl09") == "GARC850101HDFRRL09"
    assert normalize_email("  Ana.Lopez@Example.MX ") == "ana.lopez@example.mx"
