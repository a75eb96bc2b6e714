import matplotlib.pyplot as plt
import torch

from phosphenesim import PhospheneSimulator


def main():
    # Flashing blob on a phosphene grid, see examples/configs/flash_grid.yml
    simulator = PhospheneSimulator.from_yaml("examples/configs/flash_grid.yml")
    stimulation = simulator.generate_stimulus()
    results = simulator.run(stimulation, progress=True)

    activation = results["activation"][:, :, 0]
    trace = results["trace"][:, :, 0]
    brightest = activation.max(dim=0).values.argmax().item()

    fig, axes = plt.subplots(1, 3, figsize=(15, 4))

    # Habituation of the most strongly driven phosphene
    axes[0].plot(activation[:, brightest].numpy(), label="activation")
    axes[0].plot(trace[:, brightest].numpy(), label="trace")
    axes[0].set_xlabel("frame")
    axes[0].set_title("Phosphene habituation (left eye)")
    axes[0].legend()

    # Rendered stereo frames at onset and at the end of the on phase
    for ax, frame in zip(axes[1:], (0, 29)):
        render = results["render"][frame]
        ax.imshow(torch.cat([render[0], render[1]], dim=1).numpy(), cmap="gray")
        ax.set_title(f"Render, frame {frame} (left | right)")
        ax.axis("off")

    plt.tight_layout()
    plt.show()


if __name__ == "__main__":
    main()
