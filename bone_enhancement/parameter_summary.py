# Bone Enhancement Parameter Summary
# This file documents the default parameters of the multi-scale enhancement
# and explains their effects on the results.

#------------------------------------------------------------------------------
# Scale Parameters
#------------------------------------------------------------------------------

# Minimum scale for Hessian analysis (in mm)
SIGMA_MINIMUM = 0.5
# Effect: Should match the thinnest structure of interest (e.g. thin cortical bone)
# Smaller values detect finer structures but increase noise sensitivity

# Maximum scale for Hessian analysis (in mm)
SIGMA_MAXIMUM = 1.0
# Effect: Should match the thickest sheet or tube of interest
# Larger values respond to coarser structures and increase computation time

# Number of scales between minimum and maximum
NUMBER_OF_SIGMA_STEPS = 2
# Effect: More steps give a smoother scale response but cost one full pass each

# Spacing of the scales
SIGMA_STEP_METHOD = 'equispaced'  # 'equispaced' or 'logarithmic'
# Effect: Logarithmic spacing samples small scales more densely

#------------------------------------------------------------------------------
# Measure Parameters
#------------------------------------------------------------------------------

# Default measure
MEASURE = 'krcah'  # 'krcah', 'descoteaux' or 'frangi'

# Plate vs line sensitivity
ALPHA = 0.5
# Effect: Smaller values make the measure more selective for sheet-like structures

# Blob vs line sensitivity
BETA = 0.5
# Effect: Smaller values suppress blob-like structures more strongly

# Background noise suppression
C = 0.5
# Effect: Smaller values increase sensitivity but also noise
# Only used when automatic estimation is disabled

# Weight applied to the maximum Frobenius norm when estimating c (Descoteaux, Frangi)
FROBENIUS_NORM_WEIGHT = 0.5
# Effect: Larger values suppress more low-contrast structures

# Krcah parameter set used by the automatic estimation
KRCAH_PARAMETER_SET = 'implementation'  # 'implementation' or 'journal'
# 'implementation': alpha = beta = sqrt(2) * 0.5, gamma = sqrt(2) * 0.25 * mean trace
# 'journal':        alpha = beta = 0.5,           gamma = 0.25 * mean trace

# Enhance bright structures on a dark background (bone in CT)
ENHANCE_TYPE = 'bright'  # 'bright' or 'dark'

#------------------------------------------------------------------------------
# Mask Parameters
#------------------------------------------------------------------------------

# Mask label treated as outside the region of interest
BACKGROUND_VALUE = 0
# Effect: Voxels with this label give 0 and do not contribute to estimation
