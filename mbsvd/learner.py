
from .options import Options as _Options

class Learner:
    """Drives a Model over a DataSource.

    train(): for every pass, each minibatch is either scored (every
    eval_step-th batch) or trained on; with update_all, scored batches are
    trained on as well. At the end of a pass the updater (or the model
    itself when there is no updater) applies the accumulated update.

    predict(): one pass of evalbatch(), with the model's omats sent to the
    datasink.
    """
    class Options(_Options):
        npasses = 2
        eval_step = 11
        update_all = True
        pstep = 0.1
        progress_bar = False

    def __init__(self, datasource, model, mixins=None, updater=None, datasink=None, opts=None, logger="mbsvd"):
        import logging
        if datasource is None:
            raise ValueError("Learner needs a datasource")
        self.datasource = datasource
        self.model = model
        self.mixins = list(mixins) if mixins is not None else []
        self.updater = updater
        self.datasink = datasink
        self.opts = opts if opts is not None else self.Options()
        self.logger = logging.getLogger(logger)
        self.reslist = []

    def init(self):
        self.datasource.init()
        self.model.bind(self.datasource)
        self.model.init()
        for mixin in self.mixins:
            mixin.init(self.model)
        if self.updater is not None:
            self.updater.init(self.model)

    def _score(self, mats, ipass, pos):
        import numpy as np
        scores = [np.ravel(self.model.evalbatch(mats, ipass, pos))]
        for mixin in self.mixins:
            scores.append(np.ravel(mixin.score(mats, pos)))
        return np.concatenate(scores)

    def _train_batch(self, mats, ipass, pos, istep):
        self.model.dobatch(mats, ipass, pos)
        for mixin in self.mixins:
            mixin.compute(mats, istep)
        if self.updater is not None:
            self.updater.update(ipass, istep)

    def _end_pass(self, ipass):
        if self.updater is not None:
            self.updater.update_m(ipass)
        else:
            self.model.update_pass(ipass)

    def train(self):
        import numpy as np
        from .timer import template
        sw = template(self.logger.name)
        try:
            self.init()
            self.reslist = []
            istep = 0
            with sw("Training %s for %d passes" % (type(self.model).__name__, self.opts.npasses)):
                for ipass in range(self.opts.npasses):
                    with sw("Pass %d" % ipass) as pass_sw:
                        self.datasource.reset()
                        here = 0
                        pass_scores = []
                        next_report = self.opts.pstep
                        for mats in pass_sw.tqdm_range(self.datasource, disable=not self.opts.progress_bar, leave=False):
                            here += mats[0].shape[0]
                            if istep % self.opts.eval_step == 0:
                                scores = self._score(mats, ipass, here)
                                self.reslist.append(np.concatenate(([ipass, here], scores)))
                                pass_scores.append(scores)
                                if self.opts.update_all:
                                    self._train_batch(mats, ipass, here, istep)
                            else:
                                self._train_batch(mats, ipass, here, istep)
                            istep += 1
                            progress = self.datasource.progress()
                            if progress >= next_report:
                                self.logger.debug("pass=%d, %.1f%%, rows=%d" % (ipass, 100 * progress, here))
                                while next_report <= progress:
                                    next_report += self.opts.pstep
                        self._end_pass(ipass)
                    if pass_scores:
                        mean_scores = np.mean(pass_scores, axis=0)
                        self.logger.info("pass=%d, rows=%d, score=%s, %.2f seconds" % (
                            ipass, here, np.array2string(mean_scores, precision=5), pass_sw.elapsed))
        finally:
            if self.updater is not None:
                self.updater.clear()
            self._close_source()
        return self

    def predict(self):
        if self.datasink is None:
            raise ValueError("Learner.predict needs a datasink")
        from .timer import template
        sw = template(self.logger.name)
        try:
            self.init()
            self.datasink.init()
            with sw("Predicting with %s" % type(self.model).__name__) as pred_sw:
                self.datasource.reset()
                here = 0
                for mats in pred_sw.tqdm_range(self.datasource, disable=not self.opts.progress_bar, leave=False):
                    here += mats[0].shape[0]
                    self.model.evalbatch(mats, 0, here)
                    self.datasink.put(self.model.omats)
                out = self.datasink.close()
        finally:
            self._close_source()
        return out

    def _close_source(self):
        close = getattr(self.datasource, "close", None)
        if close is not None:
            close()

    @property
    def results(self):
        import numpy as np
        if not self.reslist:
            return np.zeros((0, 2))
        return np.vstack(self.reslist)
