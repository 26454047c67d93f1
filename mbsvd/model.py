
from .options import Options as _Options

class Model:
    """Base unit of work driven by a Learner.

    Subclasses implement init(), dobatch() and evalbatch(), and optionally
    update_pass() which is called once at the end of every pass.
    modelmats hold the learned state, updatemats the per-pass accumulators.
    """
    class Options(_Options):
        dim = 256
        seed = None

    def __init__(self, opts=None):
        self.opts = opts if opts is not None else self.Options()
        self.modelmats = None
        self.updatemats = None
        self.omats = None
        self.refresh = True
        self.datasource = None

    def bind(self, datasource):
        self.datasource = datasource
        return self

    @property
    def initialized(self) -> bool:
        return self.modelmats is not None

    def _check_init(self):
        if not self.initialized:
            raise RuntimeError("%s used before init()" % type(self).__name__)

    def init(self):
        raise NotImplementedError

    def dobatch(self, mats, ipass:int, pos:int):
        raise NotImplementedError

    def evalbatch(self, mats, ipass:int, pos:int):
        raise NotImplementedError

    def update_pass(self, ipass:int):
        pass

    def copy_from(self, other):
        import numpy as np
        other._check_init()
        self.modelmats = [np.array(m, copy=True) for m in other.modelmats]
        return self
