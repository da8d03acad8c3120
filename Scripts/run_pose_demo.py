import argparse
import asyncio
from pathlib import Path

import cv2

from PoseNet_Demo import IMAGES, PoseDemoError, SessionState, build_demo, load_demo_config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run multi-person PoseNet on a demo image and draw the poses.")
    parser.add_argument("--config", default=None, help="Optional JSON demo config (model, image, thresholds, flags).")
    parser.add_argument("--image", default=None, choices=IMAGES, help="Demo image id.")
    parser.add_argument(
        "--images-dir",
        default=None,
        help="Local directory holding the demo images (default: the public PoseNet asset bucket).",
    )
    parser.add_argument("--models-dir", default="models", help="Directory holding PoseNet weights (.onnx/.torchscript).")
    parser.add_argument("--weights-url", default=None, help="Base URL to download missing weights from.")
    parser.add_argument("--architecture", default=None, choices=("MobileNetV1", "ResNet50"), help="Model backbone.")
    parser.add_argument("--backend", default=None, help="Force backend: onnxruntime / torchscript.")
    parser.add_argument(
        "--onnx-providers",
        default=None,
        help='Comma-separated ORT providers, e.g. "CUDAExecutionProvider,CPUExecutionProvider".',
    )
    parser.add_argument("--min-part-conf", type=float, default=None, help="Minimum keypoint confidence to draw.")
    parser.add_argument("--min-pose-conf", type=float, default=None, help="Minimum pose confidence to draw.")
    parser.add_argument("--nms-radius", type=float, default=None, help="Keypoint NMS radius in pixels.")
    parser.add_argument("--max-detections", type=int, default=None, help="Maximum poses to detect.")
    parser.add_argument("--bounding-box", action="store_true", help="Draw pose bounding boxes.")
    parser.add_argument("--no-skeleton", action="store_true", help="Do not draw skeleton edges.")
    parser.add_argument("--no-keypoints", action="store_true", help="Do not draw keypoints.")
    parser.add_argument("--timeout", type=float, default=10.0, help="Image load timeout in seconds.")
    parser.add_argument("--out", default=None, help="Optional output path to save the rendered canvas.")
    parser.add_argument("--show", action="store_true", help="Show a window with the rendered poses.")
    return parser


def apply_args(state: SessionState, args: argparse.Namespace) -> SessionState:
    if args.architecture is not None:
        state.set_architecture(args.architecture)
    if args.image is not None:
        state.image_id = args.image
    if args.min_part_conf is not None:
        state.detection.min_part_confidence = args.min_part_conf
    if args.min_pose_conf is not None:
        state.detection.min_pose_confidence = args.min_pose_conf
    if args.nms_radius is not None:
        state.detection.nms_radius = args.nms_radius
    if args.max_detections is not None:
        state.detection.max_detections = args.max_detections
    if args.bounding_box:
        state.display.show_bounding_box = True
    if args.no_skeleton:
        state.display.show_skeleton = False
    if args.no_keypoints:
        state.display.show_keypoints = False
    return state


async def run(args: argparse.Namespace) -> int:
    state = load_demo_config(Path(args.config)) if args.config else SessionState()
    apply_args(state, args)

    onnx_providers = None
    if args.onnx_providers:
        onnx_providers = [p.strip() for p in str(args.onnx_providers).split(",") if p.strip()]

    demo_kwargs = {}
    if args.images_dir:
        demo_kwargs["images_base"] = args.images_dir

    demo = build_demo(
        state,
        image_timeout_s=args.timeout,
        models_dir=args.models_dir,
        weights_base_url=args.weights_url,
        backend=args.backend,
        onnx_providers=onnx_providers,
        **demo_kwargs,
    )
    try:
        try:
            result = await demo.bind_page()
        except PoseDemoError as exc:
            print(f"error: {exc}")
            return 1

        min_pose = state.detection.min_pose_confidence
        poses = [p for p in (result.poses if result is not None else ()) if p.score >= min_pose]
        for i, pose in enumerate(poses):
            visible = sum(1 for kp in pose.keypoints if kp.score >= state.detection.min_part_confidence)
            print(f"pose {i}: score={pose.score:.3f} keypoints={visible}/{len(pose.keypoints)}")
        print(f"{len(poses)} pose(s) above min_pose_confidence={min_pose}")

        vis = demo.canvas.pixels
        if args.out:
            ok = cv2.imwrite(args.out, vis)
            if not ok:
                raise RuntimeError(f"Failed to write output image: {args.out}")
            print(f"wrote {args.out}")

        if args.show:
            cv2.imshow("poses", vis)
            cv2.waitKey(0)
            cv2.destroyAllWindows()
    finally:
        await demo.close()

    return 0


def main() -> int:
    args = build_parser().parse_args()
    if args.timeout <= 0:
        raise ValueError("--timeout must be > 0")
    if args.max_detections is not None and args.max_detections < 1:
        raise ValueError("--max-detections must be >= 1")
    return asyncio.run(run(args))


if __name__ == "__main__":
    raise SystemExit(main())
