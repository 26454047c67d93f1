
from .options import Options as _Options

class Mixin:
    """Regularizer or diagnostic attached to a Learner next to the model.
    compute() may modify model.updatemats after each dobatch; score()
    adds columns to the scores reported at evaluation steps."""
    class Options(_Options):
        pass

    def __init__(self, opts=None):
        self.opts = opts if opts is not None else self.Options()
        self.model = None

    def init(self, model):
        self.model = model
        return self

    def compute(self, mats, step:int):
        pass

    def score(self, mats, step:int):
        import numpy as np
        return np.zeros(0)

class OrthogonalityScore(Mixin):
    """-||Q'Q - I||_F of the model's first model matrix"""
    def score(self, mats, step:int):
        import numpy as np
        Q = self.model.modelmats[0]
        G = Q.T.dot(Q)
        return np.array([-np.linalg.norm(G - np.eye(G.shape[0]))])
