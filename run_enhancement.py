import argparse
import logging
import os

import SimpleITK as sitk

from bone_enhancement.config import MEASURES, EnhancementParameters
from bone_enhancement.multiscale import MultiScaleHessianEnhancementFilter

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='Multi-scale Hessian enhancement of bone and sheet-like structures')
    parser.add_argument('--input', type=str, required=True,
                      help='Input image file')
    parser.add_argument('--output', type=str, required=True,
                      help='Output response image file')
    parser.add_argument('--mask', type=str,
                      help='Optional label image restricting the region of interest')
    parser.add_argument('--log-file', type=str,
                      help='Also write the log to this file')
    parser.add_argument('--no-progress', action='store_true',
                      help='Disable progress bars')

    # Parameter selection options
    param_group = parser.add_argument_group('Parameter Selection')
    param_group.add_argument('--parameter-set', type=str, default='default',
                          choices=sorted(EnhancementParameters.get_parameter_sets()),
                          help='Predefined parameter set')
    param_group.add_argument('--config', type=str,
                          help='JSON file of parameter overrides, applied on top of the parameter set')

    # Individual parameter overrides
    override_group = parser.add_argument_group('Parameter Overrides')
    override_group.add_argument('--measure', type=str, choices=sorted(MEASURES),
                             help='Eigenvalue-to-measure function (default: krcah)')
    override_group.add_argument('--sigma-min', type=float,
                             help='Minimum scale in mm (default: 0.5)')
    override_group.add_argument('--sigma-max', type=float,
                             help='Maximum scale in mm (default: 1.0)')
    override_group.add_argument('--sigma-steps', type=int,
                             help='Number of scales (default: 2)')
    override_group.add_argument('--step-method', type=str, choices=['equispaced', 'logarithmic'],
                             help='Spacing of the scales (default: equispaced)')
    override_group.add_argument('--alpha', type=float,
                             help='Alpha, used with --no-estimate (default: 0.5)')
    override_group.add_argument('--beta', type=float,
                             help='Beta, used with --no-estimate (default: 0.5)')
    override_group.add_argument('--c', type=float,
                             help='C, used with --no-estimate (default: 0.5)')
    override_group.add_argument('--weight', type=float,
                             help='Frobenius norm weight for estimated c (default: 0.5)')
    override_group.add_argument('--krcah-parameter-set', type=str, choices=['implementation', 'journal'],
                             help='Krcah estimation constants (default: implementation)')
    override_group.add_argument('--no-estimate', action='store_true',
                             help='Use the given alpha, beta and c instead of estimating them')
    override_group.add_argument('--dark', action='store_true',
                             help='Enhance dark structures instead of bright ones')
    override_group.add_argument('--background-value', type=int,
                             help='Mask label treated as outside (default: 0)')
    override_group.add_argument('--workers', type=int,
                             help='Threads per scale (default: all cores)')

    args = parser.parse_args(argv)

    # Collect custom parameters if any are specified
    overrides = {
        'measure': args.measure,
        'sigma_minimum': args.sigma_min,
        'sigma_maximum': args.sigma_max,
        'number_of_sigma_steps': args.sigma_steps,
        'sigma_step_method': args.step_method,
        'alpha': args.alpha,
        'beta': args.beta,
        'c': args.c,
        'frobenius_norm_weight': args.weight,
        'krcah_parameter_set': args.krcah_parameter_set,
        'background_value': args.background_value,
        'number_of_workers': args.workers,
    }
    custom_params = {key: value for key, value in overrides.items() if value is not None}
    if args.no_estimate:
        custom_params['estimate_parameters'] = False
    if args.dark:
        custom_params['enhance_type'] = 'dark'

    args.custom_params = custom_params if custom_params else None
    return args

def build_parameters(args) -> EnhancementParameters:
    """Parameter set, then JSON config, then command line overrides"""
    params = EnhancementParameters.get_parameter_sets()[args.parameter_set]
    if args.config:
        params = EnhancementParameters.from_json(args.config, base=params)
    if args.custom_params:
        params = EnhancementParameters.from_dict(args.custom_params, base=params)
    params.validate()
    return params

def main(argv=None):
    args = parse_args(argv)

    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
    file_handler = None
    if args.log_file:
        file_handler = logging.FileHandler(args.log_file)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logging.getLogger().addHandler(file_handler)

    try:
        params = build_parameters(args)
        logger.info(f"Parameters: {params.to_dict()}")

        sigmas = params.sigmas()
        logger.info("Scale progression: " + ", ".join(f"{s:.3f}mm" for s in sigmas))

        logger.info(f"Loading input image {args.input}")
        image = sitk.ReadImage(args.input)
        mask = None
        if args.mask:
            logger.info(f"Loading mask {args.mask}")
            mask = sitk.ReadImage(args.mask)

        enhancement = MultiScaleHessianEnhancementFilter(
            measure=params.build_measure(),
            sigmas=sigmas,
            mask=mask,
            background_value=params.background_value,
            number_of_workers=params.number_of_workers,
            show_progress=not args.no_progress
        )
        response = enhancement.execute(image)

        output_dir = os.path.dirname(os.path.abspath(args.output))
        os.makedirs(output_dir, exist_ok=True)
        sitk.WriteImage(response, args.output)
        logger.info(f"Enhancement complete! Response saved to {args.output}")
        return response
    except Exception as e:
        logger.error(f"Error during enhancement: {str(e)}")
        raise
    finally:
        if file_handler is not None:
            logging.getLogger().removeHandler(file_handler)
            file_handler.close()

if __name__ == "__main__":
    main()
