import itertools


class Variable(set):
    """ A named random variable with a finite set of states. The states are
    kept in insertion order (`ordered`), which fixes the row and column order
    of any table built over them. """

    def __init__(self, vals, name=None, default_value=None):
        vals = list(vals)
        super().__init__(vals)
        self._ordered_set = list(dict.fromkeys(vals))
        self.name = name
        self.default_value = default_value
        self.structure = []

    @staticmethod
    def product(*varis):
        if len(varis) == 1 and not isinstance(varis[0], Variable):
            return Variable.product(*varis[0])

        # products are kept flat: (A & B) & C has the same states as A & B & C
        atoms = [a for v in varis for a in v.atoms]
        if len(atoms) == 0:
            return Unit
        elif len(atoms) == 1:
            return atoms[0]

        joint = Variable(list(itertools.product(*(a.ordered for a in atoms))),
            name="×".join(a.name for a in atoms),
            default_value=tuple(a.default_value for a in atoms))
        joint.structure = [JointStructure(joint, *atoms)]
        return joint

    def __and__(self, other):
        return Variable.product(self, other)

    def __repr__(self):
        return "Var %s {%s}" % (self.name or '', ', '.join(repr(v) for v in self.ordered))

    def copy(self) -> 'Variable':
        duplicate = Variable(self.ordered, name=self.name, default_value=self.default_value)
        duplicate.structure = [*self.structure]
        return duplicate

    def __eq__(self, other):
        if isinstance(other, Variable):
            return set.__eq__(self, other) and self.name == other.name
        return False

    def __ne__(self, other):
        return not self.__eq__(other)

    def __hash__(self):
        return hash((frozenset(self), self.name))

    @property
    def atoms(self):
        if self == Unit:
            return

        js = [s for s in self.structure if isinstance(s, JointStructure)]
        if len(js) == 0:
            yield self
        else:
            for s in js:
                yield from s.components

    @property
    def ordered(self):
        return self._ordered_set

    @classmethod
    def binvar(cls, name: str) -> 'Variable':
        nl = name.lower()
        return cls([nl, "~" + nl], default_value=nl, name=name)

    @classmethod
    def binvars(cls, names):
        if isinstance(names, str):
            names = [n.strip() for n in names.split(",")]
        return [cls.binvar(n) for n in names]

    @classmethod
    def alph(cls, name: str, n: int):
        nl = name.lower()
        return cls([nl + str(i) for i in range(n)], default_value=nl + "0", name=name)


binvar = Variable.binvar
binvars = Variable.binvars
alph = Variable.alph
Unit = Variable('⋆', default_value='⋆', name='1')


class JointStructure:
    def __init__(self, joint, *components):
        self.joint = joint
        self.components = components

    def __repr__(self):
        return "Joint [" + ' '.join(v.name for v in self.components) + "]"
