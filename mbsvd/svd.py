
from .model import Model
from .learner import Learner
from .datasource import MatSource, FileSource
from .datasink import MatSink, FileSink
from .updater import Batch

def _qr(A):
        """Orthonormal basis of A's columns with diag(R) >= 0, so the basis is deterministic"""
        import numpy as np
        import scipy.linalg
        Q, R = scipy.linalg.qr(A, mode="economic")
        d = np.sign(np.diag(R))
        d[d == 0] = 1
        return Q * d

class SVD(Model):
        """Truncated SVD by subspace iteration over minibatches.

        Strategy:
           1. Start from a random orthonormal Q (n_features x dim).
           2. For every minibatch M, accumulate P += M'(MQ), so that after a
              pass P = X'XQ for the whole data X.
           3. At the end of a pass, orthonormalize P (QR) to get the next Q.
              With ritz, first rotate by the eigenvectors of Q'P so the
              columns come out ordered by eigenvalue.
           4. During the first minibatch_passes passes, do step 3 after every
              minibatch instead: noisier, but Q moves much faster early on.

        SV holds the eigenvalue estimates of X'X, so the singular values of X
        are sqrt(SV).
        """
        class Options(Model.Options):
                minibatch_passes = 1
                ritz = True

        def __init__(self, opts=None):
                super().__init__(opts)
                self.Q = None
                self.SV = None
                self.P = None
                self._sv_acc = None

        def init(self):
                import numpy as np
                from sklearn.utils import check_random_state
                if self.datasource is None:
                        raise RuntimeError("SVD.init() needs a datasource, call bind() first")
                nfeats = self.datasource.n_features
                if self.opts.dim < 1 or self.opts.dim > nfeats:
                        raise ValueError("SVD dim must be in [1, %d], got %d" % (nfeats, self.opts.dim))
                if self.refresh or self.modelmats is None:
                        rs = check_random_state(self.opts.seed)
                        Q = _qr(rs.standard_normal((nfeats, self.opts.dim)))
                        self.modelmats = [Q, np.zeros(self.opts.dim)]
                elif self.modelmats[0].shape != (nfeats, self.opts.dim):
                        raise ValueError("Model matrix Q has shape %s but data has %d features and dim=%d" % (
                                self.modelmats[0].shape, nfeats, self.opts.dim))
                self.Q, self.SV = self.modelmats
                self.P = np.zeros_like(self.Q)
                self._sv_acc = np.zeros(self.opts.dim)
                self.updatemats = [self.P]

        def _mmq(self, M):
                """(MQ, M'MQ) for a dense or sparse minibatch"""
                import numpy as np
                MQ = np.asarray(M.dot(self.Q))
                return MQ, np.asarray(M.T.dot(MQ))

        def dobatch(self, mats, ipass:int, pos:int):
                import numpy as np
                self._check_init()
                _, Y = self._mmq(mats[0])
                self.P += Y
                self._sv_acc += np.sum(Y * self.Q, axis=0)
                if ipass < self.opts.minibatch_passes:
                        self._subspace_iter()

        def _subspace_iter(self):
                self._set_Q(_qr(self.P))
                self.P[:] = 0

        def _set_Q(self, Q):
                self.Q[:] = Q

        def evalbatch(self, mats, ipass:int, pos:int):
                import numpy as np
                self._check_init()
                MQ, Y = self._mmq(mats[0])
                s = np.sum(Y * self.Q, axis=0)
                D = np.divide(Y, s, out=np.zeros_like(Y), where=s != 0) - self.Q
                self.omats = [MQ]
                return np.array([-np.sqrt(np.sum(D * D) / D.size)])

        def update_pass(self, ipass:int):
                import numpy as np
                import scipy.linalg
                from sklearn.utils.extmath import svd_flip
                self._check_init()
                if ipass >= self.opts.minibatch_passes:
                        if self.opts.ritz:
                                H = self.Q.T.dot(self.P)
                                H = (H + H.T) / 2
                                evals, W = scipy.linalg.eigh(H)
                                W, _ = svd_flip(W, W.T.copy())
                                order = np.argsort(evals)[::-1]
                                self.SV[:] = evals[order]
                                self._set_Q(_qr(self.P.dot(W[:, order])))
                        else:
                                self.SV[:] = self._sv_acc
                                self._set_Q(_qr(self.P))
                else:
                        self.SV[:] = self._sv_acc
                self.P[:] = 0
                self._sv_acc[:] = 0

        @property
        def singular_values(self):
                import numpy as np
                self._check_init()
                return np.sqrt(np.clip(self.modelmats[1], 0, None))

        @property
        def components(self):
                self._check_init()
                return self.modelmats[0].T

        def transform(self, X):
                import numpy as np
                self._check_init()
                return np.asarray(X.dot(self.modelmats[0]))

class MatOptions(Learner.Options, SVD.Options, MatSource.Options, Batch.Options):
        pass

class FileOptions(Learner.Options, SVD.Options, FileSource.Options, Batch.Options):
        pass

class PredOptions(Learner.Options, SVD.Options, MatSource.Options, MatSink.Options):
        pass

class FilePredOptions(Learner.Options, SVD.Options, FileSource.Options, FileSink.Options):
        pass

def _default_batch_size(mat):
        """About 30 minibatches per pass, at most 100000 rows each"""
        if isinstance(mat, (list, tuple)):
                mat = mat[0]
        return min(100000, mat.shape[0] // 30 + 1)

def learner(mat, dim:int=None, **kwargs):
        """In-memory SVD learner. Returns (Learner, MatOptions); tweak the
        options before calling train()."""
        opts = MatOptions()
        opts.batch_size = _default_batch_size(mat)
        if dim is not None:
                opts.dim = dim
        opts.update(**kwargs)
        nn = Learner(MatSource(mat, opts),
                     SVD(opts),
                     None,
                     Batch(opts),
                     None,
                     opts)
        return nn, opts

def file_learner(fnames, dim:int=None, **kwargs):
        """SVD learner over .h5ad/.npz shards, see FileSource.simple_enum"""
        opts = FileOptions()
        opts.fnames = fnames
        opts.batch_size = 100000
        if dim is not None:
                opts.dim = dim
        opts.update(**kwargs)
        nn = Learner(FileSource(opts),
                     SVD(opts),
                     None,
                     Batch(opts),
                     None,
                     opts)
        return nn, opts

def _pred_model(model, opts):
        opts.dim = model.opts.dim
        newmod = SVD(opts)
        newmod.refresh = False
        newmod.copy_from(model)
        return newmod

def predictor(model, mat, **kwargs):
        """Projects mat onto a trained model's singular vectors. predict()
        returns the sink's mats; the projection mat x Q is the first one."""
        opts = PredOptions()
        opts.batch_size = _default_batch_size(mat)
        opts.update(**kwargs)
        nn = Learner(MatSource(mat, opts),
                     _pred_model(model, opts),
                     None,
                     None,
                     MatSink(opts),
                     opts)
        return nn, opts

def file_predictor(model, fnames, ofnames, **kwargs):
        opts = FilePredOptions()
        opts.fnames = fnames
        opts.ofnames = ofnames
        opts.batch_size = 100000
        opts.update(**kwargs)
        nn = Learner(FileSource(opts),
                     _pred_model(model, opts),
                     None,
                     None,
                     FileSink(opts),
                     opts)
        return nn, opts
