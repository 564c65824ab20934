"""
Approximate posterior queries on a `BayesNet` by Markov chain Monte Carlo.

Each query starts from one complete assignment of the network (an "event")
that agrees with the evidence, drawn by forward sampling. It then wanders
through the space of complete assignments, redrawing one non-evidence
variable at a time from its distribution given its Markov blanket, and
never touching the evidence. The fraction of iterations the chain spends in
each state of the query variable converges to that state's posterior
probability.

```
sampler = GibbsSampler(net, {'C': 'c'}, rng=0)
sampler.query('PS', 5000)   # {'ps': 0.43.., '~ps': 0.56..}
```
"""
import logging
from numbers import Integral

import numpy as np

from . import config
from .bn import MalformedNetworkError

logger = logging.getLogger(__name__)


def _check_evidence(net, evidence):
	for vn, val in evidence.items():
		if vn not in net:
			raise ValueError("No variable named \"%s\" in network" % vn)
		if val not in net.vars[vn]:
			raise ValueError("\"%s\" is not a state of %s" % (val, net.vars[vn]))


def _check_count(name, value, least):
	# bools are Integral, but never a sensible count
	if isinstance(value, bool) or not isinstance(value, Integral) or value < least:
		raise ValueError("%s must be an integer of at least %d, not %r" % (name, least, value))


def generate_random_event(net, evidence, rng=None):
	"""
	Returns a complete assignment of `net` which agrees with `evidence`, and in
	which every other variable is set by forward sampling, i.e. drawn from its
	CPT once all of its parents have values.

	Raises `MalformedNetworkError` if some variables can never be evaluated
	(a cycle, or a variable with no CPT).
	"""
	rng = np.random.default_rng(rng)

	unset = {vn: net[vn] for vn in net.vars if not net[vn].is_fixed_by(evidence)}
	event = dict(evidence)

	# every scan sets at least one variable, or we give up
	for _ in range(len(unset)):
		settable = [node for node in unset.values() if node.can_be_evaluated(event)]
		if not settable:
			break

		for node in settable:
			del unset[node.name]
			event[node.name] = node.sample_given_parents(event, rng)

		if not unset:
			break

	if unset:
		raise MalformedNetworkError("Variable(s) %s can never be evaluated; the network "
			"has a cycle or a variable without a CPT" % ', '.join(sorted(unset)))

	return event


class GibbsSampler:
	"""
	Gibbs sampling over a fixed `net` and `evidence`.

	Each query owns its own event, so a sampler can be reused for several
	queries. With the defaults (`burn_in=0`, `thin=1`) every iteration is
	counted, starting from the initial event; `burn_in` runs that many
	uncounted sweeps first, and `thin` runs that many sweeps per counted
	iteration.

	:param rng: seed or `numpy.random.Generator` used for every draw.
	"""
	def __init__(self, net, evidence=None, rng=None, burn_in=None, thin=None):
		self.net = net
		self.evidence = dict(evidence) if evidence else {}
		_check_evidence(net, self.evidence)

		self.rng = np.random.default_rng(config.DEFAULT_SEED if rng is None else rng)
		self.burn_in = config.MCMC_DEFAULT_BURN_IN if burn_in is None else burn_in
		self.thin = config.MCMC_DEFAULT_THIN if thin is None else thin

		_check_count("burn_in", self.burn_in, 0)
		_check_count("thin", self.thin, 1)

	def generate_random_event(self):
		return generate_random_event(self.net, self.evidence, self.rng)

	def _resampled(self, event):
		""" the nodes that Gibbs sweeps redraw: everything not fixed by evidence """
		return [self.net[vn] for vn in event if not self.net[vn].is_fixed_by(self.evidence)]

	def _sweep(self, event, nodes):
		for node in nodes:
			event[node.name] = node.sample_given_markov_blanket(event, self.rng)

	def _start(self, sample_count):
		""" A fresh initial event and the nodes to redraw, after burn-in. """
		_check_count("sample_count", sample_count, 1)

		event = self.generate_random_event()
		nodes = self._resampled(event)

		for _ in range(self.burn_in):
			self._sweep(event, nodes)
		return event, nodes

	def _advance(self, event, nodes):
		for _ in range(self.thin):
			self._sweep(event, nodes)

	def samples(self, sample_count=None):
		""" Copies of the event at each counted iteration. """
		if sample_count is None:
			sample_count = config.MCMC_DEFAULT_SAMPLE_COUNT
		event, nodes = self._start(sample_count)
		for _ in range(sample_count):
			yield dict(event)
			self._advance(event, nodes)

	def query(self, varname, sample_count=None, callback=None):
		"""
		Returns a dict from each state of `varname` to its estimated posterior
		probability given the evidence.

		:param callback: if given, called once per iteration with the fraction
			of the iterations completed so far (0 for the first call); its
			return value is ignored.
		"""
		if sample_count is None:
			sample_count = config.MCMC_DEFAULT_SAMPLE_COUNT
		states = self.net[varname].states

		# keep track of number of times a state has been observed
		state_frequencies = {s: 0 for s in states}

		logger.debug("querying %s | %s with %s samples", varname, self.evidence, sample_count)
		event, nodes = self._start(sample_count)
		for n in range(sample_count):
			state_frequencies[event[varname]] += 1
			self._advance(event, nodes)
			if callback is not None:
				callback(n / sample_count)

		magnitude = sum(state_frequencies.values())
		result = {s: count / magnitude for s, count in state_frequencies.items()}
		logger.debug("posterior of %s: %s", varname, result)
		return result


def query_variable(net, varname, sample_count=None, evidence=None,
		callback=None, rng=None, burn_in=None, thin=None):
	""" Estimated posterior distribution of `varname` in `net` given
	`evidence`; see `GibbsSampler.query`. """
	sampler = GibbsSampler(net, evidence, rng=rng, burn_in=burn_in, thin=thin)
	return sampler.query(varname, sample_count, callback)
