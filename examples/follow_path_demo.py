"""
examples/follow_path_demo.py - 局部规划器闭环演示

在一张静态代价地图上，用参考插件装配 DWB 局部规划器，
以理想运动学模型闭环跟踪一条直线路径，直到到达目标。

用法:
    python examples/follow_path_demo.py                      # 默认参数
    python examples/follow_path_demo.py --length 3.0         # 路径长度 (m)
    python examples/follow_path_demo.py --obstacle           # 在路径旁放置障碍物
    python examples/follow_path_demo.py --config dwb.json    # 从 JSON 加载配置
    python examples/follow_path_demo.py --report out.md      # 保存最后一个周期的评价报告
"""

import argparse
import logging
import math

from dwb_planner import (
    Costmap2D,
    DWBConfig,
    EvaluationReportGenerator,
    NoLegalTrajectoriesError,
    Path2D,
    Pose2D,
    RecordingPublisher,
    StaticTransformer,
    Twist2D,
    build_local_planner,
)

LOG_FMT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
logger = logging.getLogger("follow_path_demo")


def default_config() -> DWBConfig:
    return DWBConfig(
        critics=[
            {"name": "Oscillation"},
            {"name": "BaseObstacle", "scale": 0.02},
            {"name": "PathDist", "scale": 32.0},
            {"name": "GoalDist", "scale": 24.0},
            {"name": "PreferForward", "scale": 5.0},
        ],
        generator_params={"vx_samples": 10, "vtheta_samples": 15},
        goal_checker_params={"xy_goal_tolerance": 0.15, "yaw_goal_tolerance": 0.3},
    )


def integrate(pose: Pose2D, cmd: Twist2D, dt: float) -> Pose2D:
    """理想差速模型前进一个控制周期"""
    c, s = math.cos(pose.theta), math.sin(pose.theta)
    return Pose2D(
        pose.x + (cmd.x * c - cmd.y * s) * dt,
        pose.y + (cmd.x * s + cmd.y * c) * dt,
        pose.theta + cmd.theta * dt,
        pose.frame_id,
    )


def main():
    parser = argparse.ArgumentParser(description="DWB 局部规划器闭环演示")
    parser.add_argument("--length", type=float, default=2.0, help="路径长度 (m)")
    parser.add_argument("--spacing", type=float, default=0.1, help="路径点间距 (m)")
    parser.add_argument("--dt", type=float, default=0.1, help="控制周期 (s)")
    parser.add_argument("--max-steps", type=int, default=300)
    parser.add_argument("--obstacle", action="store_true", help="在路径旁放置障碍物")
    parser.add_argument("--config", type=str, default=None, help="DWBConfig JSON 文件")
    parser.add_argument("--report", type=str, default=None, help="评价报告输出路径")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format=LOG_FMT, datefmt="%H:%M:%S")

    config = DWBConfig.from_json(args.config) if args.config else default_config()

    costmap = Costmap2D(int((args.length + 2.0) / 0.05), 60, 0.05,
                        frame_id="odom", origin=(-1.0, -1.5))
    if args.obstacle:
        n = costmap.fill_world_rect(args.length / 2, 0.35, args.length / 2 + 0.2, 0.6)
        logger.info("放置障碍物: %d 个单元格", n)

    tf = StaticTransformer()
    tf.set_transform("map", "odom", 0.0, 0.0, 0.0)

    n_pts = int(round(args.length / args.spacing)) + 1
    path = Path2D.from_xytheta(
        [(i * args.spacing, 0.0, 0.0) for i in range(n_pts)], frame_id="map")

    publisher = RecordingPublisher()
    planner = build_local_planner(config, costmap, tf, publisher=publisher)
    planner.set_goal_pose(path.stamped(-1))
    planner.set_plan(path)

    pose = Pose2D(0.0, 0.0, 0.0, "odom")
    vel = Twist2D()
    reached = False
    for step in range(args.max_steps):
        if planner.is_goal_reached(pose, vel):
            reached = True
            break
        try:
            cmd = planner.compute_velocity_commands(pose, vel)
        except NoLegalTrajectoriesError as e:
            logger.error("第 %d 步没有可行轨迹: %s", step, e)
            break
        pose = integrate(pose, cmd, args.dt)
        vel = cmd
        if step % 10 == 0:
            logger.info("step %3d  pose=(%.2f, %.2f, %.2f)  cmd=(%.2f, %.2f)",
                        step, pose.x, pose.y, pose.theta, cmd.x, cmd.theta)

    if reached:
        logger.info("到达目标: %d 步, 最终位姿 (%.3f, %.3f, %.3f)",
                    step, pose.x, pose.y, pose.theta)
    else:
        logger.warning("未到达目标, 最终位姿 (%.3f, %.3f, %.3f)", pose.x, pose.y, pose.theta)

    if args.report and publisher.last_evaluation is not None:
        report = EvaluationReportGenerator.generate(publisher.last_evaluation)
        with open(args.report, "w", encoding="utf-8") as f:
            f.write(report)
        logger.info("报告已保存: %s", args.report)


if __name__ == "__main__":
    main()
