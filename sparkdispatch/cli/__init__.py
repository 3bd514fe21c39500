from sparkdispatch.domain import Defaults

defaults = Defaults()
