import math
import warnings

import numpy as np
import pytest

from ldpc_bp.core import (
    ChannelModel,
    IndexOutOfRange,
    InvalidDimensions,
    NumericDomainWarning,
    ParityCheckMatrix,
    SumProductEngine,
    load_reference_code,
    resolve,
)

JOHNSON_LLR = [-0.5, 2.5, -4.0, 5.0, -3.5, 2.5]


def johnson():
    code = load_reference_code("johnson")
    return code.matrix(), ChannelModel.from_llrs(6, JOHNSON_LLR)


def _direct_decode(bits, llr, iterations):
    """Dense re-computation over every (c, v) pair, edges filtered inline."""

    n_c, n_v = len(bits), len(bits[0])
    c2v = [[llr[v] for v in range(n_v)] for _ in range(n_c)]
    out = []
    for _ in range(iterations):
        v2c = [[0.0] * n_v for _ in range(n_c)]
        for c in range(n_c):
            for v in range(n_v):
                if not bits[c][v]:
                    continue
                t = 1.0
                for i in range(n_v):
                    if i != v and bits[c][i]:
                        t *= math.tanh(c2v[c][i] / 2)
                v2c[c][v] = math.log((1 + t) / (1 - t))
        marginal = []
        for v in range(n_v):
            total = llr[v]
            for c in range(n_c):
                if bits[c][v]:
                    total += v2c[c][v]
            marginal.append(total)
        out.append((c2v, v2c, marginal))
        next_c2v = [[0.0] * n_v for _ in range(n_c)]
        for c in range(n_c):
            for v in range(n_v):
                total = llr[v]
                for i in range(n_c):
                    if i != c and bits[i][v]:
                        total += v2c[i][v]
                next_c2v[c][v] = total
        c2v = next_c2v
    return out


def test_trace_has_fixed_length():
    H, ch = johnson()
    trace = SumProductEngine(8).resolve(H, ch)
    assert len(trace) == 8
    assert [it.index for it in trace] == list(range(8))
    assert trace.final is trace.at(7)


def test_no_early_exit_after_valid_codeword():
    H = ParityCheckMatrix(load_reference_code("johnson").bits)
    ch = ChannelModel.from_llrs(6, [4.0, 4.0, -4.0, 4.0, -4.0, -4.0])  # codeword 001011
    trace = resolve(H, ch, iterations=5)
    assert trace.first_valid() == 0
    assert len(trace) == 5
    for it in trace:
        np.testing.assert_array_equal(it.bits, [0, 0, 1, 0, 1, 1])


def test_iteration_zero_broadcasts_channel_llr():
    H, ch = johnson()
    first = resolve(H, ch).at(0)
    llr = ch.llrs()
    for c, v in H.edges():
        assert first.check_to_variable(c, v) == llr[v]
    assert first.check_to_variable(0, 0) == pytest.approx(-0.5, abs=1e-12)
    assert first.check_to_variable(2, 0) == pytest.approx(-0.5, abs=1e-12)


def test_worked_scenario_first_iteration():
    H, ch = johnson()
    first = resolve(H, ch, 8).at(0)
    np.testing.assert_allclose(
        first.marginal,
        [-0.2676, 5.0334, -3.7676, 2.2783, -6.2217, -0.7173],
        atol=1e-2,
    )
    np.testing.assert_array_equal(first.bits, [1, 0, 1, 0, 1, 1])
    np.testing.assert_array_equal(first.syndrome, [1, 0, 1, 0])
    assert not first.is_valid


def test_matches_direct_recomputation():
    H, ch = johnson()
    trace = resolve(H, ch, 8)
    expected = _direct_decode(H.bits.tolist(), ch.llrs().tolist(), 8)
    for it, (c2v, v2c, marginal) in zip(trace, expected):
        for c, v in H.edges():
            assert it.check_to_variable(c, v) == pytest.approx(c2v[c][v], rel=1e-7, abs=1e-9)
            assert it.variable_to_check(c, v) == pytest.approx(v2c[c][v], rel=1e-7, abs=1e-9)
        np.testing.assert_allclose(it.marginal, marginal, rtol=1e-7, atol=1e-9)


def test_extrinsic_message_ignores_own_edge():
    H, ch = johnson()
    it = resolve(H, ch).at(0)
    # Check 0 joins variables 0, 1, 3; the message to v0 depends on v1 and v3 only.
    t = math.tanh(ch.llr(1) / 2) * math.tanh(ch.llr(3) / 2)
    assert it.variable_to_check(0, 0) == pytest.approx(math.log((1 + t) / (1 - t)), rel=1e-12)


def test_syndrome_consistency():
    H, ch = johnson()
    for it in resolve(H, ch, 8):
        for c in range(H.n_c):
            parity = 0
            for v in H.variables_of(c):
                parity ^= int(it.bits[v])
            assert it.syndrome[c] == parity
        assert it.bits.tolist() == [int(m < 0) for m in it.marginal]
        assert it.is_valid == (not it.syndrome.any())


def test_determinism():
    H, ch = johnson()
    a = resolve(H, ch, 8)
    b = resolve(H, ch, 8)
    for x, y in zip(a, b):
        for name in ("c2v", "v2c", "marginal", "bits", "syndrome", "saturated"):
            assert getattr(x, name).tobytes() == getattr(y, name).tobytes()


def test_iteration_is_immutable():
    H, ch = johnson()
    it = resolve(H, ch).at(0)
    with pytest.raises(ValueError):
        it.marginal[0] = 1.0
    with pytest.raises(AttributeError):
        it.index = 3


def test_non_edges_are_not_readable():
    H, ch = johnson()
    it = resolve(H, ch).at(0)
    assert np.isnan(it.c2v[0, 2])
    with pytest.raises(IndexOutOfRange):
        it.check_to_variable(0, 2)
    with pytest.raises(IndexOutOfRange):
        it.variable_to_check(9, 0)


def test_trace_index_bounds():
    H, ch = johnson()
    trace = resolve(H, ch, 3)
    with pytest.raises(IndexOutOfRange):
        trace.at(3)
    with pytest.raises(IndexOutOfRange):
        trace.at(-1)


def test_degree_one_check_saturates_to_inf():
    H = ParityCheckMatrix([[1, 1], [0, 1]])
    ch = ChannelModel.from_llrs(2, [1.0, -2.0])
    with pytest.warns(NumericDomainWarning):
        trace = resolve(H, ch, 3)
    it = trace.at(0)
    assert it.variable_to_check(1, 1) == math.inf
    assert it.saturated[1, 1]
    assert not it.saturated[0, 0]
    assert it.numeric_warning
    assert trace.saturated_iterations() == [0, 1, 2]
    assert it.marginal[1] == math.inf
    assert it.bits[1] == 0


def test_unsaturated_run_has_no_flags():
    H = ParityCheckMatrix([[1, 1, 1]])
    ch = ChannelModel.from_llrs(3, [1.0, -1.0, 0.5])
    with warnings.catch_warnings():
        warnings.simplefilter("error", NumericDomainWarning)
        trace = resolve(H, ch, 2)
    assert trace.saturated_iterations() == []


def test_channel_matrix_mismatch():
    H, _ = johnson()
    with pytest.raises(InvalidDimensions):
        resolve(H, ChannelModel(5))


def test_iterations_must_be_positive():
    with pytest.raises(ValueError):
        SumProductEngine(0)


def test_negative_saturation_propagates_nan():
    H = ParityCheckMatrix([[1, 1], [0, 1]])
    ch = ChannelModel.from_llrs(2, [-40.0, 0.0])
    with pytest.warns(NumericDomainWarning):
        trace = resolve(H, ch, 2)
    it = trace.at(0)
    # tanh(-20) rounds to -1, so the message to v1 along check 0 is -inf;
    # check 1 is degree one and sends +inf, leaving v1's total undefined.
    assert it.variable_to_check(0, 1) == -math.inf
    assert it.variable_to_check(1, 1) == math.inf
    assert it.saturated[0, 1]
    assert math.isnan(it.marginal[1])
    assert it.bits[1] == 0
    assert it.bits[0] == 1


def test_trace_slicing_and_index_types():
    H, ch = johnson()
    trace = resolve(H, ch, 4)
    tail = trace[1:3]
    assert isinstance(tail, tuple)
    assert [it.index for it in tail] == [1, 2]
    assert [it.index for it in trace[::-1]] == [3, 2, 1, 0]
    assert trace[np.int64(2)].index == 2
    with pytest.raises(TypeError):
        trace.at(1.0)
    with pytest.raises(TypeError):
        trace["0"]
