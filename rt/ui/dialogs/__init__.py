from rt.ui.dialogs.analysis import AnalysisDialog, start_analysis
from rt.ui.dialogs.settings import ConfigDialog
