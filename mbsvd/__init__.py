from .options import Options
from .model import Model
from .datasource import DataSource, MatSource, FileSource, IteratorSource
from .datasink import DataSink, MatSink, FileSink
from .updater import Updater, Batch
from .mixin import Mixin, OrthogonalityScore
from .learner import Learner
from .svd import SVD, learner, file_learner, predictor, file_predictor
from .validate import reference_eig, align_signs, compare, synthetic_lowrank
from .io import load_matrix, save_matrix, matrix_shape
from .arg_parse import parse_args, learner_options
from .timer import template as stopwatch
