"""Default settings shared by the estimators. All of them can be overridden per call."""

# pre-averaging
DEFAULT_M0 = 200  # number of random subsamples drawn per mode
DEFAULT_M = 5  # number of subsamples kept for pre-averaging
MIN_SUBSAMPLE_SIZE = 10  # smallest time window that gives a usable covariance

# iterative projection
DEFAULT_MAX_ITER = 30
DEFAULT_TOL = 1e-4  # on the sine of the largest principal angle

# bootstrap rank selection
DEFAULT_B = 200
DEFAULT_ALPHA = 0.05  # lower quantile of the bootstrapped correlations
DEFAULT_THRESHOLD = 0.9

# eigenvalue ratios
RATIO_SENTINEL = 1e16
EIGEN_ZERO_TOL = 1e-12  # relative to the largest eigenvalue
