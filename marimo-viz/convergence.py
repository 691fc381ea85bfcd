import marimo

__generated_with = "0.14.16"
app = marimo.App(width="medium")


@app.cell
def _():
    import random

    import matplotlib.pyplot as plt
    import pandas as pd
    import seaborn as sns

    from pi_server.driver import FrameDriver
    from pi_server.estimator import new_state, start

    return FrameDriver, new_state, pd, plt, random, sns, start


@app.cell
def _():
    # Same defaults as the server: 250 samples per frame
    config = {
        "samples": 5000,
        "batch_size": 250,
        "seed": 7,
    }
    return (config,)


@app.cell
def _(FrameDriver, config, new_state, random, start):
    points = []
    frames = []

    driver = FrameDriver(
        batch_size=config["batch_size"],
        rng=random.Random(config["seed"]),
        on_sample=points.append,
        on_frame=frames.append,
    )
    final = driver.run(start(new_state(config["samples"])))
    print(f"Estimate after {final.samples_done} samples: {final.estimate:.6f}")
    return final, frames, points


@app.cell
def _(frames, pd, points):
    samples_df = pd.DataFrame(points, columns=["x", "y", "inside"])
    frames_df = pd.DataFrame(
        {
            "samples_done": [f.samples_done for f in frames],
            "estimate": [f.estimate for f in frames],
        }
    )
    return frames_df, samples_df


@app.cell
def _(frames_df, plt, samples_df, sns):
    import math

    fig, axes = plt.subplots(1, 2, figsize=(12, 5))
    fig.suptitle("Monte Carlo estimate of π", fontsize=16)

    sns.scatterplot(data=samples_df, x="x", y="y", hue="inside", s=4, linewidth=0, ax=axes[0])
    axes[0].set_aspect("equal")
    axes[0].set_title("Samples")

    sns.lineplot(data=frames_df, x="samples_done", y="estimate", ax=axes[1])
    axes[1].axhline(math.pi, color="black", linestyle="--", linewidth=1)
    axes[1].set_title("Running estimate")

    plt.tight_layout()
    fig
    return


if __name__ == "__main__":
    app.run()
