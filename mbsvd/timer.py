
class stopwatch:
    """Logs a message on entry and the elapsed time on exit. Learner wraps
    training, every pass and prediction in one:

        sw = template("mbsvd")
        with sw("Pass 0") as pass_sw:
            for mats in pass_sw.tqdm_range(datasource, leave=False):
                model.dobatch(mats, 0, pos)
        pass_sw.elapsed  # seconds, set on exit
    """
    def __init__(self, message, logger):
        self.logger = logger
        self.pre_message = message
        if len(message) > 1:
            self.post_message = message[0].lower() + message[1:]
        else:
            self.post_message = message
        self.elapsed = None
    def __enter__(self):
        from time import time
        self.logger.info(self.pre_message)
        self.timer = time()
        return self
    def tqdm_range(self, item_list, **kwargs):
        from tqdm.auto import tqdm
        return tqdm(item_list, desc=self.pre_message, **kwargs)
    def __exit__(self, exc_type, exc_val, exc_tb):
        from time import time
        self.elapsed = time() - self.timer
        self.logger.info("Finished %s in %.2f seconds" % (self.post_message, self.elapsed))

def template(logname:str="mbsvd", level=None):
    import logging
    logger = logging.getLogger(logname)
    if level is not None:
        logger.setLevel(level)
    return lambda msg: stopwatch(msg, logger=logger)
