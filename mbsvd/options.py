
class Options:
    """Bag of options. Defaults live on the class, so option sets compose
    by inheritance:

        class MatOptions(Learner.Options, SVD.Options, MatSource.Options, Batch.Options):
            pass

        opts = MatOptions(dim=20, npasses=4)
    """
    def __init__(self, **kwargs):
        self.update(**kwargs)

    def _known(self):
        known = set()
        for klass in type(self).__mro__:
            for k, v in vars(klass).items():
                if not k.startswith("_") and not callable(v) and not isinstance(v, (staticmethod, classmethod, property)):
                    known.add(k)
        return known

    def update(self, **kwargs):
        known = self._known()
        for k, v in kwargs.items():
            if k not in known:
                raise AttributeError("%s has no option \"%s\"" % (type(self).__name__, k))
            setattr(self, k, v)
        return self

    def what(self):
        return {k: getattr(self, k) for k in sorted(self._known())}

    def __repr__(self):
        return "%s(%s)" % (type(self).__name__,
                           ", ".join("%s=%r" % (k, v) for k, v in self.what().items()))
