import itertools

import numpy as np
import pytest

from bnmc.bn import BayesNet, MalformedNetworkError
from bnmc.dist import CPT
from bnmc.inference import GibbsSampler, generate_random_event, query_variable
from bnmc.rv import binvar, binvars, alph, Unit
from bnmc.lib import smoking, burglary


def _posterior_by_enumeration(net, varname, evidence):
    names = list(net.vars)
    post = {s: 0. for s in net.vars[varname].ordered}
    for vals in itertools.product(*(net.vars[n].ordered for n in names)):
        event = dict(zip(names, vals))
        if any(event[k] != v for k, v in evidence.items()):
            continue
        post[event[varname]] += net.joint_probability(event)
    Z = sum(post.values())
    return {s: p / Z for s, p in post.items()}


def _two_node():
    A, B = binvars("A,B")
    net = BayesNet()
    net += CPT.from_ddict(Unit, A, {'⋆': 0.2})
    net += CPT.from_ddict(A, B, {'a': 0.9, '~a': 0.3})
    return net


def test_probabilities_sum_to_one():
    result = query_variable(smoking(), 'PS', 500, evidence={'C': 'c'}, rng=0)
    assert sum(result.values()) == pytest.approx(1.)


def test_every_state_is_reported():
    A = binvar('A')
    X = alph('X', 3)
    net = BayesNet()
    net += CPT.from_ddict(Unit, A, {'⋆': 0.5})
    net += CPT.from_ddict(A, X, {'a': [0.5, 0.5, 0.], '~a': [0.5, 0.5, 0.]})

    result = query_variable(net, 'X', 200, rng=0)
    assert list(result) == ['x0', 'x1', 'x2']
    assert result['x2'] == 0.


def test_single_sample_is_the_initial_event():
    net = smoking()
    event = GibbsSampler(net, {'C': 'c'}, rng=7).generate_random_event()
    result = GibbsSampler(net, {'C': 'c'}, rng=7).query('S', 1)

    assert result[event['S']] == 1.
    assert sorted(result.values()) == [0., 1.]


def test_initial_event_respects_evidence():
    net = burglary()
    evidence = {'J': 'j', 'M': '~m'}
    for seed in range(10):
        event = generate_random_event(net, evidence, rng=seed)
        assert set(event) == set(net.vars)
        assert event['J'] == 'j' and event['M'] == '~m'
        assert all(event[vn] in net.vars[vn] for vn in net.vars)


def test_evidence_never_changes():
    evidence = {'J': 'j', 'M': 'm'}
    sampler = GibbsSampler(burglary(), evidence, rng=3)
    for event in sampler.samples(300):
        assert event['J'] == 'j' and event['M'] == 'm'
    assert sampler.evidence == evidence


def test_query_keeps_evidence_through_burn_in_and_thinning():
    evidence = {'J': 'j', 'M': '~m'}
    sampler = GibbsSampler(burglary(), evidence, rng=4, burn_in=20, thin=3)

    assert sampler.query('J', 200) == {'j': 1., '~j': 0.}
    assert sampler.query('M', 200) == {'m': 0., '~m': 1.}
    assert sampler.evidence == evidence


def test_incomplete_cpt_is_not_sampled():
    A = binvar('A')
    X = alph('X', 3)
    net = BayesNet()
    net += CPT.from_ddict(Unit, A, {'⋆': 1.})
    with pytest.warns(UserWarning, match="Unnormalized"):
        net += CPT.from_ddict(A, X, {'a': {'x0': 0.2}, '~a': [0.3, 0.3, 0.4]})

    with pytest.raises(MalformedNetworkError, match="Undefined probabilities"):
        query_variable(net, 'X', 500, rng=0)


def test_evidence_is_copied():
    evidence = {'C': 'c'}
    sampler = GibbsSampler(smoking(), evidence, rng=0)
    evidence['C'] = '~c'
    assert sampler.evidence == {'C': 'c'}


def test_same_seed_same_answer():
    net = smoking()
    r1 = query_variable(net, 'SH', 1000, evidence={'C': 'c'}, rng=42)
    r2 = query_variable(net, 'SH', 1000, evidence={'C': 'c'}, rng=42)
    assert r1 == r2

    r3 = net.query_variable('SH', 1000, evidence={'C': 'c'}, rng=np.random.default_rng(42))
    assert r3 == r1


def test_query_evidence_variable():
    result = query_variable(smoking(), 'C', 50, evidence={'C': '~c'}, rng=0)
    assert result == {'c': 0., '~c': 1.}


@pytest.mark.parametrize("seed", [0, 1, 2])
def test_converges_on_two_node_network(seed):
    net = _two_node()
    exact = _posterior_by_enumeration(net, 'A', {'B': 'b'})
    est = query_variable(net, 'A', 20000, evidence={'B': 'b'}, rng=seed)
    for s in exact:
        assert est[s] == pytest.approx(exact[s], abs=0.05)


@pytest.mark.parametrize("seed", [0, 1, 2])
def test_converges_on_smoking_network(seed):
    net = smoking()
    evidence = {'C': 'c'}
    exact = _posterior_by_enumeration(net, 'PS', evidence)
    est = query_variable(net, 'PS', 20000, evidence=evidence, rng=seed)
    for s in exact:
        assert est[s] == pytest.approx(exact[s], abs=0.05)


def test_burn_in_and_thinning():
    net = _two_node()
    exact = _posterior_by_enumeration(net, 'A', {'B': '~b'})
    calls = []
    est = query_variable(net, 'A', 5000, evidence={'B': '~b'}, rng=5,
        burn_in=100, thin=3, callback=calls.append)

    assert len(calls) == 5000
    assert sum(est.values()) == pytest.approx(1.)
    assert est['a'] == pytest.approx(exact['a'], abs=0.05)


def test_progress_callback():
    calls = []
    query_variable(smoking(), 'PS', 40, rng=0, callback=calls.append)

    assert len(calls) == 40
    assert calls[0] == 0.
    assert all(0 <= c < 1 for c in calls)
    assert all(a < b for a, b in zip(calls, calls[1:]))


def test_callback_return_value_is_ignored():
    net = smoking()
    r1 = query_variable(net, 'S', 300, rng=9)
    r2 = query_variable(net, 'S', 300, rng=9, callback=lambda f: False)
    assert r1 == r2


def test_cyclic_network_fails_fast():
    A, B = binvars("A,B")
    net = BayesNet()
    net += CPT.make_random(A, B, rng=0)
    net += CPT.make_random(B, A, rng=1)

    with pytest.raises(MalformedNetworkError, match="A, B"):
        generate_random_event(net, {}, rng=0)
    with pytest.raises(MalformedNetworkError):
        query_variable(net, 'A', 10, rng=0)


def test_dangling_parent_fails_fast():
    A, B, C = binvars("A,B,C")
    net = BayesNet()
    net += CPT.from_ddict(Unit, C, {'⋆': 0.5})
    net += CPT.make_random(A, B, rng=0)

    with pytest.raises(MalformedNetworkError, match="A, B"):
        generate_random_event(net, {}, rng=0)

    # observing the parent is enough to sample the rest
    event = generate_random_event(net, {'A': 'a'}, rng=0)
    assert set(event) == {'A', 'B', 'C'}


@pytest.mark.parametrize("count", [0, -3, 2.5, True])
def test_bad_sample_count(count):
    with pytest.raises(ValueError, match="sample_count"):
        query_variable(smoking(), 'PS', count, rng=0)


def test_unknown_query_variable():
    with pytest.raises(ValueError, match="No variable named"):
        query_variable(smoking(), 'Q', 10, rng=0)


def test_bad_evidence():
    with pytest.raises(ValueError, match="No variable named"):
        GibbsSampler(smoking(), {'Q': 'q'})
    with pytest.raises(ValueError, match="not a state"):
        GibbsSampler(smoking(), {'C': 'maybe'})


@pytest.mark.parametrize("options", [
    {"burn_in": -1}, {"burn_in": 2.0}, {"thin": 0}, {"thin": 1.5}, {"thin": True}])
def test_bad_sampler_options(options):
    with pytest.raises(ValueError, match=next(iter(options))):
        GibbsSampler(smoking(), **options)
