"""
Bayesian networks over discrete `Variable`s. A `BayesNet` holds one `CPT` per
variable, giving its distribution conditioned on its parents, and keeps the
parent -> child structure in a `networkx.DiGraph`.

```
net = BayesNet()
net += CPT.from_ddict(Unit, PS, {'⋆': 0.3})
net += CPT.from_ddict(PS, S, {'ps': 0.4, '~ps': 0.2})
net.query_variable('PS', evidence={'S': 's'})
```
"""
import warnings
from collections import ChainMap

import numpy as np
import networkx as nx

from .rv import Variable
from .dist import CPT, parent_key, sample_from


class MalformedNetworkError(ValueError):
	""" The network cannot be sampled: it has a cycle, or a variable whose
	distribution is never defined. """


class Node:
	"""
	One variable of a `BayesNet`, together with everything needed to sample
	it: its parents' table and its children. Obtained with `net[name]`.
	"""
	def __init__(self, net, name):
		self.net = net
		self.name = name
		self.var = net.vars[name]
		self.cpd = net.cpds.get(name, None)

		if self.cpd is not None:
			self._parents = self.cpd.parent_names
			self._rows = dict(zip(self.cpd.nfrom.ordered, self.cpd.to_numpy()))
			self._col = {s: j for j, s in enumerate(self.cpd.nto.ordered)}

	def __repr__(self):
		return "Node(%s)" % self.name

	@property
	def states(self):
		return self.var.ordered

	@property
	def parents(self):
		return [] if self.cpd is None else list(self._parents)

	@property
	def children(self):
		return [self.net[c] for c in self.net.children(self.name)]

	def is_fixed_by(self, evidence):
		return self.name in evidence

	def can_be_evaluated(self, assignment):
		""" True iff every parent already has a value in `assignment`. A
		variable with no table can never be evaluated. """
		return self.cpd is not None and all(p in assignment for p in self.parents)

	def given(self, assignment) -> np.ndarray:
		if self.cpd is None:
			raise MalformedNetworkError("No CPT for variable \"%s\"" % self.name)
		if len(self._parents) == 1:
			return self._rows[assignment[self._parents[0]]]
		return self._rows[parent_key(self.cpd.nfrom, assignment)]

	def prob(self, assignment, state):
		return self.given(assignment)[self._col[state]]

	def sample_given_parents(self, assignment, rng):
		""" Forward sampling: a state drawn from P(self | parents), reading the
		parent values from `assignment`. """
		return sample_from(self._defined(self.given(assignment)), self.cpd.nto.ordered, rng)

	def blanket_weights(self, event) -> np.ndarray:
		""" Unnormalized full conditional of this variable given the rest of
		the complete assignment `event`:
			P(x | parents) * Π_children P(child | child's parents, with x)
		"""
		weights = self.given(event).copy()
		children = self.children
		for i, s in enumerate(self.cpd.nto.ordered):
			if weights[i] == 0:
				continue
			trial = ChainMap({self.name: s}, event)
			for child in children:
				weights[i] *= child.prob(trial, event[child.name])
		return weights

	def _defined(self, weights):
		if not np.all(np.isfinite(weights)):
			raise MalformedNetworkError("Undefined probabilities when sampling %s: %s"
				% (self.name, weights))
		return weights

	def sample_given_markov_blanket(self, event, rng):
		weights = self._defined(self.blanket_weights(event))
		if not weights.sum() > 0:
			warnings.warn("All states of %s have zero probability given its Markov blanket;"
				" sampling uniformly" % self.name)
			weights = np.ones(len(weights))
		return sample_from(weights, self.cpd.nto.ordered, rng)


class BayesNet:
	def __init__(self):
		self.vars = {}   # varname => Variable
		self.cpds = {}   # varname => CPT of that variable given its parents
		self.graph = nx.DiGraph()
		self._nodes = {}

	def __repr__(self):
		return "BayesNet(%s)" % ', '.join(self.vars)

	def __len__(self):
		return len(self.vars)

	def __contains__(self, name):
		return name in self.vars

	def __iter__(self):
		return iter(self.vars)

	def __getitem__(self, name) -> Node:
		if name not in self.vars:
			raise ValueError("No variable named \"%s\" in network" % name)
		if name not in self._nodes:
			self._nodes[name] = Node(self, name)
		return self._nodes[name]

	def copy(self) -> 'BayesNet':
		newme = BayesNet()
		for vn, v in self.vars.items():
			newme._include_var(v)
		for cpd in self.cpds.values():
			newme._set_cpd(cpd)
		return newme

	def _include_var(self, var):
		if getattr(var, 'name', None) is None:
			raise ValueError("Must name variable before incorporating into the network.")

		if var.name in self.vars:
			if set(self.vars[var.name]) != set(var):
				raise ValueError("Variable \"%s\" is already in the network with states %s"
					% (var.name, self.vars[var.name].ordered))
			return

		self.vars[var.name] = var
		self.graph.add_node(var.name, var=var)

	def _set_cpd(self, cpd):
		tgt = cpd.nto.name
		if tgt in self.cpds:
			raise ValueError("Variable \"%s\" already has a CPT" % tgt)

		self.cpds[tgt] = cpd
		for p in cpd.parent_names:
			self.graph.add_edge(p, tgt)

	def add_data(self, data):
		""" Include a CPT, a variable, or a list or tuple of them.

		Adding a CPT for Y given X also adds the variables X and Y, and
		the edges X -> Y. Each variable may be given only one CPT.
		"""
		self._nodes.clear()

		if isinstance(data, CPT):
			for a in data.nfrom.atoms:
				self._include_var(a)
			self._include_var(data.nto)
			self._set_cpd(data)

		elif isinstance(data, Variable):
			self._include_var(data.copy())

		elif type(data) in (tuple, list):
			for o in data:
				self.add_data(o)

		else:
			raise TypeError("could not add %r to a BayesNet" % (data,))

	def __iadd__(self, other):
		self.add_data(other)
		return self

	def __add__(self, other):
		rslt = self.copy()
		rslt += other
		return rslt

	######### STRUCTURE ##########
	def parents(self, name):
		return self[name].parents

	def children(self, name):
		return list(self.graph.successors(name))

	def markov_blanket(self, name):
		""" Parents, children, and the children's other parents. """
		blanket = dict.fromkeys(self.parents(name))
		for c in self.children(name):
			blanket[c] = None
			blanket.update(dict.fromkeys(self.parents(c)))
		blanket.pop(name, None)
		return list(blanket)

	def is_acyclic(self):
		return nx.is_directed_acyclic_graph(self.graph)

	def topological_order(self):
		try:
			return list(nx.topological_sort(self.graph))
		except nx.NetworkXUnfeasible as e:
			raise MalformedNetworkError("network has a cycle") from e

	def validate(self):
		missing = [vn for vn in self.vars if vn not in self.cpds]
		if missing:
			raise MalformedNetworkError("No CPT for variable(s) %s" % ', '.join(missing))
		if not self.is_acyclic():
			cycle = nx.find_cycle(self.graph)
			raise MalformedNetworkError("network has a cycle: %s"
				% ' -> '.join(u for u, v in cycle))
		return self

	def joint_probability(self, event):
		""" Probability of a complete assignment: the product of each
		variable's CPT entry. """
		p = 1.
		for vn in self.vars:
			p *= self[vn].prob(event, event[vn])
		return p

	######### INFERENCE ##########
	def query_variable(self, varname, sample_count=None, evidence=None,
			callback=None, rng=None, **sampler_kwargs):
		""" Estimated posterior distribution of `varname` given `evidence`,
		by Gibbs sampling. See `inference.GibbsSampler`. """
		from .inference import GibbsSampler

		sampler = GibbsSampler(self, evidence, rng=rng, **sampler_kwargs)
		return sampler.query(varname, sample_count, callback)

	######### CONVERSIONS ########
	@staticmethod
	def from_pgmpy(model):
		""" Builds a network from a pgmpy Bayesian network, or from any
		iterable of `TabularCPD`s. """
		cpds = model.get_cpds() if hasattr(model, 'get_cpds') else model

		net = BayesNet()
		for cpd in cpds:
			net += CPT.from_pgmpy(cpd)
		return net
