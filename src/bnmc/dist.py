import warnings
from collections.abc import Mapping
from functools import reduce
from operator import and_
from typing import Type, TypeVar

import numpy as np
import pandas as pd

from . import rv
from .rv import Unit

SubCPT = TypeVar('SubCPT', bound='CPT')


def sample_from(probs, values, rng):
	""" Draws one of `values` with the (possibly unnormalized) weights `probs`,
	by inverting the cumulative distribution at a uniform point. States with
	zero weight are never returned. """
	cum = np.cumsum(probs)
	u = rng.random() * cum[-1]
	i = int(np.searchsorted(cum, u, side='right'))
	return values[min(i, len(values) - 1)]


def parent_key(nfrom, assignment):
	""" The value of the (possibly joint) parent variable `nfrom`, read off
	the component values in `assignment`. """
	atoms = list(nfrom.atoms)
	if len(atoms) == 0:
		return nfrom.ordered[0]
	elif len(atoms) == 1:
		return assignment[atoms[0].name]
	return tuple(assignment[a.name] for a in atoms)


class CPT(pd.DataFrame):
	""" A conditional probability table P(nto | nfrom). Rows are indexed by the
	states of `nfrom` (a joint variable when there are several parents, `Unit`
	when there are none), columns by the states of `nto`. """
	_metadata = ["nfrom", "nto"]

	def __init__(self, *args, nfrom=None, nto=None, **kwargs):
		super().__init__(*args, **kwargs)
		self.nfrom = nfrom
		self.nto = nto

	@property
	def _constructor(self):
		# arithmetic on a CPT gives back a plain frame without the variables
		return pd.DataFrame

	@classmethod
	def _from_matrix_inner(cls: Type[SubCPT], nfrom, nto, matrix) -> SubCPT:
		matrix = np.asarray(matrix, dtype=float).reshape(len(nfrom), len(nto))
		return cls(matrix, index=pd.Index(nfrom.ordered, tupleize_cols=False),
			columns=nto.ordered, nfrom=nfrom, nto=nto)

	@classmethod
	def from_matrix(cls: Type[SubCPT], nfrom, nto, matrix) -> SubCPT:
		return cls._from_matrix_inner(nfrom, nto, matrix).check_normalized()

	@classmethod
	def make_stoch(cls: Type[SubCPT], nfrom, nto, matrix) -> SubCPT:
		return cls._from_matrix_inner(nfrom, nto, matrix).renormalized()

	@classmethod
	def from_ddict(cls: Type[SubCPT], nfrom, nto, data) -> SubCPT:
		"""
		Build a table from a dictionary keyed by the states of `nfrom`. Each
		row may be
		 - a mapping from states of `nto` to probabilities. If exactly one
		   state is missing it receives the remaining mass; if the row already
		   sums to one, missing states get zero.
		 - a sequence of probabilities, in the order of `nto.ordered`.
		 - a single number: the probability of `nto.default_value`.

		```
		CPT.from_ddict(Unit, PS, {'⋆': 0.3})
		CPT.from_ddict(S & SH, C, {('s','sh'): 0.6, ...})
		```
		"""
		rows = []
		for a in nfrom.ordered:
			row = data[a]
			if not isinstance(row, Mapping):
				try:
					iter(row)
				except TypeError:
					row = {nto.default_value: row}
				else:
					row = {b: v for (b, v) in zip(nto.ordered, row)}
			else:
				row = dict(row)

			total = sum(row.values())
			remainder = [b for b in nto.ordered if b not in row]
			if len(remainder) == 1:
				row[remainder[0]] = 1 - total
			elif np.isclose(total, 1):
				for b in remainder:
					row[b] = 0

			rows.append([row.get(b, np.nan) for b in nto.ordered])

		return cls.from_matrix(nfrom, nto, rows)

	@classmethod
	def make_random(cls: Type[SubCPT], vfrom, vto, rng=None) -> SubCPT:
		rng = np.random.default_rng(rng)
		mat = rng.random((len(vfrom), len(vto)))
		return cls._from_matrix_inner(vfrom, vto, mat).renormalized()

	@classmethod
	def det(cls: Type[SubCPT], vfrom, vto, mapping) -> SubCPT:
		mat = np.zeros((len(vfrom), len(vto)))
		for i, fi in enumerate(vfrom.ordered):
			mapfi = mapping[fi] if isinstance(mapping, Mapping) else mapping(fi)
			mat[i, vto.ordered.index(mapfi)] = 1

		return cls.from_matrix(vfrom, vto, mat)

	@classmethod
	def from_pgmpy(cls: Type[SubCPT], tcpd) -> SubCPT:
		""" Converts a `pgmpy.factors.discrete.TabularCPD`. """
		tgt = rv.Variable(tcpd.state_names[tcpd.variable], name=tcpd.variable)
		srcnames = tcpd.variables[1:]
		if len(srcnames) > 0:
			src = reduce(and_, [rv.Variable(tcpd.state_names[l], name=l) for l in srcnames])
		else:
			src = Unit

		# pgmpy puts the child on the first axis; rows here are parent states
		return cls.from_matrix(src, tgt,
			np.moveaxis(tcpd.get_values().reshape(len(tgt), *(len(tcpd.state_names[l]) for l in srcnames)), 0, -1)
				.reshape(-1, len(tgt)))

	################################

	def copy(self, deep=True):
		return CPT(self.to_numpy(copy=True), index=self.index, columns=self.columns,
			nfrom=self.nfrom, nto=self.nto)

	def to_pgmpy(self):
		from pgmpy.factors.discrete import TabularCPD

		parents = list(self.nfrom.atoms)
		return TabularCPD(self.nto.name, len(self.nto),
			values=self.to_numpy().reshape(-1, len(self.nto)).T,
			evidence=[v.name for v in parents] or None,
			evidence_card=[len(v) for v in parents] or None,
			state_names={v.name: list(v.ordered) for v in [self.nto, *parents]})

	@property
	def parent_names(self):
		return [a.name for a in self.nfrom.atoms]

	def check_normalized(self):
		mat = self.to_numpy()
		finite = np.all(np.isfinite(mat), axis=1)
		amt = np.where(finite, (mat.sum(axis=1) - 1) ** 2, 0).sum()
		if amt > 1E-5:
			warnings.warn("%.4f-Unnormalized CPT for %s" % (amt, self.nto.name))
		if not finite.all():
			# a row left incomplete, e.g. by from_ddict with several states missing
			undefined = [a for a, ok in zip(self.nfrom.ordered, finite) if not ok]
			warnings.warn("Unnormalized CPT for %s: undefined entries given %s"
				% (self.nto.name, undefined))

		return self

	def renormalized(self):
		mat = self.to_numpy()
		mat = mat / mat.sum(axis=1, keepdims=True)
		return CPT(mat, index=self.index, columns=self.columns, nfrom=self.nfrom, nto=self.nto)

	def given(self, assignment) -> np.ndarray:
		""" The distribution over `nto` selected by the parent values in
		`assignment` (a mapping from variable names to states). """
		i = self.nfrom.ordered.index(parent_key(self.nfrom, assignment))
		return self.to_numpy()[i]

	def prob(self, assignment, state):
		return self.given(assignment)[self.nto.ordered.index(state)]

	def sample(self, assignment, rng=None):
		rng = np.random.default_rng(rng)
		return sample_from(self.given(assignment), self.nto.ordered, rng)
