
from .options import Options as _Options

class Updater:
    """Applies a model's updatemats. update() runs after every trained
    minibatch, update_m() once at the end of a pass."""
    class Options(_Options):
        pass

    def __init__(self, opts=None):
        self.opts = opts if opts is not None else self.Options()
        self.model = None

    def init(self, model):
        self.model = model
        return self

    def update(self, ipass:int, step:int):
        pass

    def update_m(self, ipass:int):
        pass

    def clear(self):
        pass

class Batch(Updater):
    """Full-batch rule: the model accumulates over the whole pass and
    applies the result in its update_pass hook."""
    class Options(Updater.Options):
        pass

    def update_m(self, ipass:int):
        self.model.update_pass(ipass)
